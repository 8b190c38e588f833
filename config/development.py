import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DEBUG = True

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Share of net pay a single loan may take per payslip, in percent
DEFAULT_DEDUCTION_CAP_PERCENT = os.getenv("DEFAULT_DEDUCTION_CAP_PERCENT", "30")

# Zero-padded width of the numeric part of generated ids (TS-000001)
ID_WIDTH = int(os.getenv("ID_WIDTH", "6"))
