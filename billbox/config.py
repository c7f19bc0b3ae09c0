import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.environ.get('FLASK_SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Fix DATABASE_URL for SQLAlchemy 1.4+ (postgres:// -> postgresql://)
    database_url = os.environ.get('DATABASE_URL') or 'sqlite:///billbox.db'
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    SQLALCHEMY_DATABASE_URI = database_url

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # Supabase (auth only)
    SUPABASE_URL = os.environ.get('SUPABASE_URL')
    SUPABASE_ANON_KEY = os.environ.get('SUPABASE_ANON_KEY')
    PASSWORD_RESET_REDIRECT = os.environ.get('PASSWORD_RESET_REDIRECT') or 'http://localhost:5000/reset_password'

    # App defaults
    CURRENCY = 'INR'
    CURRENCY_SYMBOL = '₹'
    DEFAULT_REMINDER_DAYS = 3
    SAVINGS_PROJECTION_RATE = 0.08  # Annual, used for 12-month growth projection
    FORECAST_MONTHS = 24
    MAX_INTERACTIONS = 100
