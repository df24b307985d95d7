# settings.py
import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO") #priority levels: DEBUG < INFO < WARNING < ERROR < CRITICAL
ENABLE_CONSOLE_LOG = os.getenv("ENABLE_CONSOLE_LOG", "true").lower() == "true"

# Bridge configuration file and the environment selected inside it
SPANREED_CONFIG = os.getenv("SPANREED_CONFIG", "bridge_config.json")
SPANREED_ENV = os.getenv("SPANREED_ENV", "")

# Overrides applied on top of the active environment (empty means "not set")
SPANREED_USER_ID = os.getenv("SPANREED_USER_ID", "")
SPANREED_REDIS_URL = os.getenv("SPANREED_REDIS_URL", "")
