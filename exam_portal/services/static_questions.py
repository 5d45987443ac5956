# exam_portal/services/static_questions.py
"""Fixed MO-300 question set used when the database pool is unusable."""
from typing import Dict, List

from ..schemas.exam_schemas import ComposedExam, Question, QuestionType

DEFAULT_DOMAINS = [
    "Manage Presentations",
    "Insert and Format",
    "Tables and Charts",
    "Transitions and Animations",
    "Multiple Presentations",
]

_TASK_OPTIONS = {
    "A": "Completed",
    "B": "Not Completed",
    "C": "Partially Completed",
    "D": "Not Attempted",
}

# (domain, text, options, correct, points)
_MULTIPLE_CHOICE = [
    ("Manage Presentations",
     "You need to change the slide size of the presentation to Widescreen (16:9). "
     "Which ribbon tab contains the Slide Size option?",
     {"A": "Home tab", "B": "Design tab", "C": "View tab", "D": "Slide Show tab"}, "B", 10),
    ("Manage Presentations",
     "You want to print handouts with 3 slides per page and lines for notes. "
     "Which print layout should you select?",
     {"A": "Full Page Slides", "B": "Notes Pages", "C": "Outline", "D": "Handouts (3 slides)"}, "D", 10),
    ("Insert and Format",
     "Which of the following is NOT a way to insert a new slide?",
     {"A": "Press Ctrl+M", "B": 'Right-click a slide and select "New Slide"',
      "C": "Click New Slide on the Home tab", "D": "Press Ctrl+N"}, "D", 10),
    ("Insert and Format",
     "You need to add alternative text to an image for accessibility. Where do you find this option?",
     {"A": "Picture Format tab > Alt Text", "B": "Home tab > Font group",
      "C": "Insert tab > Images group", "D": "View tab > Show group"}, "A", 15),
    ("Tables and Charts",
     "You want to change the chart type from a column chart to a line chart. "
     "Which tab appears when a chart is selected?",
     {"A": "Chart Design tab", "B": "Format tab", "C": "Design tab", "D": "Layout tab"}, "A", 10),
    ("Tables and Charts",
     "Which SmartArt layout is best for showing a process or timeline?",
     {"A": "List", "B": "Cycle", "C": "Process", "D": "Hierarchy"}, "C", 10),
    ("Transitions and Animations",
     "Which transition creates a smooth movement between slides by morphing similar objects?",
     {"A": "Fade", "B": "Push", "C": "Morph", "D": "Zoom"}, "C", 15),
    ("Transitions and Animations",
     "Where can you see and reorder all animations on a slide?",
     {"A": "Slide Sorter view", "B": "Animation Pane", "C": "Selection Pane", "D": "Notes Page view"}, "B", 10),
    ("Multiple Presentations",
     "You want to combine changes from two versions of the same presentation. "
     "Which feature should you use?",
     {"A": "Compare", "B": "Combine", "C": "Merge", "D": "Integrate"}, "A", 15),
    ("Multiple Presentations",
     "Which view allows you to see thumbnails of all slides for easy reorganization?",
     {"A": "Normal view", "B": "Slide Sorter view", "C": "Reading view", "D": "Outline view"}, "B", 10),
]

# (text, instructions, points)
_PERFORMANCE = [
    ('PERFORMANCE TASK: In the provided presentation, apply a "Fade" transition to all slides '
     "with a duration of 1.5 seconds.",
     'Open MO300_MockTask1.pptx. On the Transitions tab, select Fade. Click "Apply To All". '
     "Set Duration to 01.50. Save the file.", 25),
    ("PERFORMANCE TASK: On Slide 3, format the title with: Font: Calibri, Size: 44, "
     "Color: Dark Blue, Text Shadow offset: Bottom Right.",
     "Select the title on Slide 3. On Home tab, set Font to Calibri, Size 44, Font Color to Dark Blue. "
     "In Font dialog box (click arrow in Font group), select Text Effects, choose Shadow > Offset: "
     "Bottom Right.", 30),
    ('PERFORMANCE TASK: Insert a new slide after Slide 5 using the "Title and Content" layout. '
     'Add the text "Quarterly Results" as the title.',
     'Select Slide 5. On Home tab, click New Slide arrow, choose "Title and Content". '
     'Click title placeholder, type "Quarterly Results".', 20),
    ('PERFORMANCE TASK: On Slide 7, animate the bullet points to appear "One by One" with a '
     "1-second delay between animations.",
     "Select the bullet points on Slide 7. On Animations tab, choose an entrance effect (e.g., Fade). "
     'Click Effect Options, choose "By Paragraph". In Timing group, set Start: "After Previous", '
     "Duration: 01.00, Delay: 01.00.", 30),
    ('PERFORMANCE TASK: Protect the presentation with the password "secure123" to require a '
     "password to modify (not to open).",
     'Go to File > Info > Protect Presentation > Encrypt with Password. Enter "secure123". '
     "Click OK. Re-enter password. Save the presentation.", 35),
]


def static_questions() -> List[Question]:
    questions: List[Question] = []
    for domain, text, options, correct, points in _MULTIPLE_CHOICE:
        number = len(questions) + 1
        questions.append(Question(
            id=number,
            original_id=number,
            question_number=number,
            domain=domain,
            text=text,
            type=QuestionType.MULTIPLE_CHOICE,
            options=dict(options),
            correct_answer=correct,
            points=points,
        ))
    for text, instructions, points in _PERFORMANCE:
        number = len(questions) + 1
        questions.append(Question(
            id=number,
            original_id=number,
            question_number=number,
            domain="Performance Task",
            text=text,
            type=QuestionType.PERFORMANCE,
            options=dict(_TASK_OPTIONS),
            correct_answer="A",
            points=points,
            instructions=instructions,
        ))
    return questions


def static_exam() -> ComposedExam:
    questions: Dict[int, Question] = {q.id: q for q in static_questions()}
    return ComposedExam(questions=questions, used_fallback=True)
