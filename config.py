# config.py
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- SCHEDULE INTERPRETATION DEFAULTS ---
# Duration given to the chronologically last item when it has no end time.
DEFAULT_DURATION_MINUTES = 60

# Closed set of categories an agenda item may carry.
ITEM_TYPES = ('presentation', 'break', 'workshop', 'panel', 'other')

# Timezone the schedule's HH:MM times are read in (a pytz zone name).
TIMER_TIMEZONE = os.getenv('TIMER_TIMEZONE', 'UTC')

# --- TIMER / TICK SETTINGS ---
TICK_INTERVAL_SECONDS = 1.0
NEAR_END_LEAD_MS = 5000  # "Break Egg" lands this far before an item's end
AMBER_THRESHOLD_MS = 60000

# --- SCHEDULE PARSING SERVICE ---
GEMINI_API_KEY = os.getenv('GEMINI_API_KEY') or os.getenv('API_KEY')
GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.5-flash')
GEMINI_API_URL = os.getenv(
    'GEMINI_API_URL',
    'https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent'
)
REQUEST_TIMEOUT = 15
HEADERS = {
    'User-Agent': 'Mozilla/5.0 (compatible; Konqueror/4.0; Linux) KHTML/4.0.80 (like Gecko)',
    'Accept': 'text/html,application/xhtml+xml'
}

# --- SCHEDULE FILE CONFIGURATION ---
SCHEDULES_DIR = "schedules"

# The programme offered by the "Load Sample" button, already in the
# structure the parsing service returns so it loads without a network call.
SAMPLE_SCHEDULE = [
    {"startTime": "09:00", "title": "Registration & Coffee", "type": "break"},
    {"startTime": "09:30", "title": "Opening Remarks: The State of AI in Archives", "type": "presentation"},
    {"startTime": "10:00", "title": "Keynote: Digital Restoration in the 21st Century", "type": "presentation"},
    {"startTime": "11:00", "title": "Coffee Break", "type": "break"},
    {"startTime": "11:30", "title": "Workshop: Prompt Engineering for Librarians", "type": "workshop"},
    {"startTime": "12:30", "title": "Lunch Break", "type": "break"},
    {"startTime": "13:30", "title": "Panel: Ethics of Generative Models in Museums", "type": "panel"},
    {"startTime": "15:00", "title": "Closing Thoughts", "type": "other"},
]

# --- SERVER ---
SERVER_HOST = os.getenv('SERVER_HOST', '0.0.0.0')
SERVER_PORT = int(os.getenv('SERVER_PORT', '8080'))
