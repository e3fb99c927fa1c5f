import os
from dotenv import load_dotenv

load_dotenv(override=True)

class Config:
    """
    Base configuration for the SwagCo shop.
    Deployments provide secrets and database paths via environment variables.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')
    MAX_UPLOAD_MB = int(os.getenv('MAX_UPLOAD_MB', '50'))

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Database paths - use environment variables or fallback to DB_DIR
    SHOP_DB = os.getenv('SHOP_DB', os.path.join(DB_DIR, "shop.db"))
    ANALYTICS_DB = os.getenv('ANALYTICS_DB', os.path.join(DB_DIR, "analytics_log.db"))

    # Email settings
    EMAIL_PROVIDER = os.getenv('EMAIL_PROVIDER', 'resend')
    EMAIL_ADDRESS = os.getenv("EMAIL_ADDRESS", "orders@myswagco.com")
    EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
    EMAIL_HOST = os.getenv("EMAIL_HOST", "smtp.gmail.com")
    EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
    EMAIL_BRAND_NAME = os.getenv('EMAIL_BRAND_NAME', 'My Swag Co')
    EMAIL_WEBSITE_URL = os.getenv('EMAIL_WEBSITE_URL', 'http://localhost:5000')
    EMAIL_SUPPORT_EMAIL = os.getenv('EMAIL_SUPPORT_EMAIL', 'support@myswagco.com')
    EMAIL_ADMIN_EMAIL = os.getenv('EMAIL_ADMIN_EMAIL')
    AWS_REGION = os.getenv('AWS_REGION', 'us-east-1')

    # Resend API settings
    RESEND_API_KEY = os.getenv('RESEND_API_KEY') or os.getenv('RESEND')

    # Stripe settings
    STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY") or os.getenv("STRIPE_PUBLIC_KEY_PK")
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY") or os.getenv("STRIPE_PUBLIC_KEY_SK")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd")

    # Storage settings (local static folder or DigitalOcean Spaces)
    STORAGE_TYPE = os.getenv('STORAGE_TYPE', 'local')
    SPACES_FOLDER = os.getenv('SPACES_FOLDER', 'uploads')
    DO_SPACES_REGION = os.getenv('DO_SPACES_REGION')
    DO_SPACES_NAME = os.getenv('DO_SPACES_NAME')
    DO_SPACES_KEY = os.getenv('DO_SPACES_KEY')
    DO_SPACES_SECRET = os.getenv('DO_SPACES_SECRET')

    # Vectorizer API (raster artwork -> SVG)
    VECTORIZER_API_URL = os.getenv('VECTORIZER_API_URL', 'https://vectorizer.ai/api/v1/vectorize')
    VECTORIZER_API_ID = os.getenv('VECTORIZER_API_ID')
    VECTORIZER_API_SECRET = os.getenv('VECTORIZER_API_SECRET')
    VECTORIZER_MODE = os.getenv('VECTORIZER_MODE', 'production')

    # Storefront origins allowed to call /api/* with credentials
    CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',') if o.strip()]

    # Port for local server
    port = int(os.getenv('PORT', '5000'))


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val is not None:
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None:
        return val
    return os.getenv(key, default)
