"""
Constants used throughout the Interview Assistant application.
"""

# Persisted state keys
CANDIDATES_KEY = "candidates"
INTERVIEWS_KEY = "interviews"
RECOVERY_KEY = "unfinished_interview"

# Interview shape
QUESTION_COUNT = 6
REQUIRED_IDENTITY_FIELDS = ("name", "email", "phone")
DEFAULT_POSITION = "Full Stack Developer"

# Seconds allowed per question, by difficulty
TIME_LIMITS = {
    "easy": 20,
    "medium": 60,
    "hard": 120,
}
DEFAULT_TIME_LIMIT = 60

# Answers that are never sent to the evaluator
DEGENERATE_ANSWERS = ("yes", "no")
MIN_ANSWER_LENGTH = 5
DEGENERATE_FEEDBACK = "Answer is too short or irrelevant."
DEGENERATE_SUGGESTIONS = ["Provide a detailed and relevant answer."]

# Search defaults
SEARCH_THRESHOLD = 0.3
SEARCH_CACHE_SIZE = 50
SEARCH_DEBOUNCE_SECONDS = 0.3

# Timer defaults
TIMER_PRECISION_MS = 100
TIMER_FRAME_INTERVAL = 1 / 60

# Retry defaults
RETRY_MAX_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 1.0
GENERATION_DELAY_SECONDS = 0.5

# Notice messages
NOTICE_FIELDS_EXTRACTED = "All information extracted successfully!"
NOTICE_FIELDS_COLLECTED = "Information collected successfully!"
NOTICE_EXTRACTION_FAILED = "Could not read the resume. Please enter your details manually."
NOTICE_MISSING_FIELDS = "Please complete all required information"
NOTICE_INTERVIEW_STARTED = "Interview started successfully!"
NOTICE_GENERATION_FAILED = (
    "Failed to generate interview questions. Please check your connection and try again."
)
NOTICE_EMPTY_ANSWER = "Please provide an answer"
NOTICE_ANSWER_SUBMITTED = "Answer submitted! Moving to next question."
NOTICE_EVALUATION_FAILED = "Your answer was saved but could not be scored right now."
NOTICE_INCOMPLETE = "Interview seems incomplete. Please ensure all questions were answered."
NOTICE_COMPLETED = "Interview completed. Thank you!"
NOTICE_SUMMARY_FAILED = "The interview summary could not be generated."
NOTICE_TIME_UP = (
    "The time limit for this question has been reached. "
    "Your current answer will be submitted automatically."
)

# Error messages
ERROR_NO_INTERVIEW = "No active interview"
ERROR_SESSION_NOT_FOUND = "Session not found"
ERROR_CANDIDATE_NOT_FOUND = "Candidate not found"
