import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DEBUG = False

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEFAULT_DEDUCTION_CAP_PERCENT = os.getenv("DEFAULT_DEDUCTION_CAP_PERCENT", "30")
ID_WIDTH = int(os.getenv("ID_WIDTH", "6"))
