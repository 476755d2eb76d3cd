import os

# Backend endpoints
API_URL = os.environ.get('FEEDBACK_API_URL', 'http://localhost:5000')
SOCKET_URL = os.environ.get('FEEDBACK_SOCKET_URL', API_URL)
SOCKET_PATH = 'socket.io'

# Seconds; None keeps the transport default
REQUEST_TIMEOUT = float(os.environ['REQUEST_TIMEOUT']) if os.environ.get('REQUEST_TIMEOUT') else None

SECRET_KEY = os.environ.get('SECRET_KEY', 'your_secret_key_change_in_production')

# "mean" (simple mean of percentages) or "weighted" (score-weighted)
SCORE_POLICY = os.environ.get('SCORE_POLICY', 'mean')

# Report configuration
INSTITUTION_NAME = os.environ.get('INSTITUTION_NAME', 'NARASARAOPETA ENGINEERING COLLEGE(AUTONOMOUS)')
REPORT_TITLE = 'FEEDBACK REPORT'
LOGO_PATH = os.environ.get('LOGO_PATH', '')
SIGNATURE_PATH = os.environ.get('SIGNATURE_PATH', '')
SIGNATURE_CAPTION = 'Signature of Vice Principal'

# Roles
ROLE_ADMIN = 'admin'
ROLE_COORDINATOR = 'coordinator'
ROLE_BSH = 'bsh'
ROLES = (ROLE_ADMIN, ROLE_COORDINATOR, ROLE_BSH)

BRANCH_OPTIONS = [
    'CSE', 'ECE', 'EEE', 'MECH', 'CIVIL', 'AI',
    'AIML', 'DS', 'CS', 'IT', 'MBA', 'MCA'
]
BSH_SUFFIX = '-BSH'
BSH_BRANCHES = [f"{b}{BSH_SUFFIX}" for b in BRANCH_OPTIONS if b not in ('MBA', 'MCA')]

YEARS = (1, 2, 3, 4)
BSH_YEARS = (1,)
SEMESTERS = (1, 2)

# Feedback questions
QUESTION_KEYS = [f"Q{i}" for i in range(1, 11)]
FEEDBACK_QUESTIONS = [
    "How is the faculty's approach?",
    "How has the faculty prepared for the classes?",
    "Does the faculty inform you about your expected competencies, course outcomes?",
    "How often does the faculty illustrate the concepts through examples and practical applications?",
    "Whether faculty covers syllabus in time?",
    "Do you agree that the faculty teaches content beyond syllabus?",
    "How does the faculty communicate?",
    "Whether faculty returns answer scripts in time and produces helpful comments?",
    "How does the faculty identify your strengths and encourage you with high level of challenges?",
    "How does the faculty counsel & encourage the students?"
]

# Placeholders used when a comment half is missing
NO_COLLEGE_COMMENT = 'No college feedback provided'
NO_DEPARTMENT_COMMENT = 'No department feedback provided'

# Server returns this exact message for a title collision
DUPLICATE_TITLE_ERROR = 'Configuration with this title already exists'
