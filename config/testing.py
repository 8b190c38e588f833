SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True

LOG_LEVEL = "WARNING"

DEFAULT_DEDUCTION_CAP_PERCENT = "30"
ID_WIDTH = 6
