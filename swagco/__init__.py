"""
SwagCo - Custom Screen-Printing Shop API
========================================

A Flask backend for a custom apparel shop with:
- Quotes from quantity tiers and per-colour print pricing
- Orders with deposits, discounts and artwork uploads
- Group-order campaigns with participant or organizer payment
- Stripe payments and webhooks
- Transactional email and an admin back office

Usage:
    from flask import Flask
    from swagco import SwagCo

    app = Flask(__name__)
    SwagCo(app)

Or use the factory:
    from swagco import create_app
    app = create_app()
"""

import logging
import os

import click
from flask import Flask
from flask.cli import AppGroup
from flask_cors import CORS

from .core import Config, init_shop_db

__version__ = '0.1.0'
__author__ = 'SwagCo'

logger = logging.getLogger(__name__)

# Settings copied from Config into app.config unless the app already sets them
CONFIG_KEYS = (
    'SECRET_KEY', 'MAX_UPLOAD_MB', 'DB_DIR', 'SHOP_DB', 'ANALYTICS_DB',
    'EMAIL_PROVIDER', 'EMAIL_ADDRESS', 'EMAIL_PASSWORD', 'EMAIL_HOST', 'EMAIL_PORT',
    'EMAIL_BRAND_NAME', 'EMAIL_WEBSITE_URL', 'EMAIL_SUPPORT_EMAIL', 'EMAIL_ADMIN_EMAIL',
    'AWS_REGION', 'RESEND_API_KEY',
    'STRIPE_PUBLISHABLE_KEY', 'STRIPE_SECRET_KEY', 'STRIPE_WEBHOOK_SECRET', 'STRIPE_CURRENCY',
    'STORAGE_TYPE', 'SPACES_FOLDER', 'DO_SPACES_REGION', 'DO_SPACES_NAME', 'DO_SPACES_KEY',
    'DO_SPACES_SECRET', 'VECTORIZER_API_URL', 'VECTORIZER_API_ID', 'VECTORIZER_API_SECRET',
    'VECTORIZER_MODE', 'CORS_ORIGINS',
)


def module_blueprints():
    """(module name, blueprint) pairs registered by SwagCo.init_app"""
    from .modules.admin import admin_bp
    from .modules.artwork import artwork_bp
    from .modules.auth import auth_bp
    from .modules.campaigns import campaigns_bp
    from .modules.discounts import discounts_bp
    from .modules.drafts import drafts_bp
    from .modules.garments import garments_bp
    from .modules.ops import ops_health_bp
    from .modules.orders import orders_bp
    from .modules.payments import payments_bp
    from .modules.pending_orders import pending_orders_bp
    from .modules.pricing import pricing_bp

    return [
        ('auth', auth_bp),
        ('admin', admin_bp),
        ('pricing', pricing_bp),
        ('garments', garments_bp),
        ('orders', orders_bp),
        ('pending_orders', pending_orders_bp),
        ('drafts', drafts_bp),
        ('payments', payments_bp),
        ('campaigns', campaigns_bp),
        ('artwork', artwork_bp),
        ('discounts', discounts_bp),
        ('ops', ops_health_bp),
    ]


class SwagCo:
    """Flask extension that wires config, the shop database, email and all blueprints"""

    def __init__(self, app=None):
        self.app = app
        self._registered = []
        if app is not None:
            self.init_app(app)

    def get_registered_modules(self):
        return list(self._registered)

    def init_app(self, app):
        # Database paths follow an app-level DB_DIR when only the directory is given
        if app.config.get('DB_DIR'):
            app.config.setdefault('SHOP_DB', os.path.join(app.config['DB_DIR'], 'shop.db'))
            app.config.setdefault('ANALYTICS_DB', os.path.join(app.config['DB_DIR'], 'analytics_log.db'))
        for key in CONFIG_KEYS:
            if app.config.get(key) is None:
                app.config[key] = getattr(Config, key)
        if not app.config.get('SECRET_KEY'):
            logger.warning("FLASK_SECRET_KEY is not set; sessions will not be secure")
        if app.config.get('MAX_CONTENT_LENGTH') is None:
            # Leave room for multipart overhead above the upload limit
            app.config['MAX_CONTENT_LENGTH'] = (int(app.config['MAX_UPLOAD_MB']) + 1) * 1024 * 1024

        os.makedirs(app.config['DB_DIR'], exist_ok=True)
        init_shop_db(app.config['SHOP_DB'])

        from .modules.email.email_service import email_service
        email_service.init_app(app)

        CORS(app, resources={r'/api/*': {'origins': app.config['CORS_ORIGINS']}}, supports_credentials=True)

        for name, blueprint in module_blueprints():
            app.register_blueprint(blueprint)
            self._registered.append(name)
            logger.debug(f"Registered module: {name}")

        app.cli.add_command(swagco_cli)
        app.extensions['swagco'] = self
        logger.info("SwagCo initialised")


# ===================
# CLI
# ===================

swagco_cli = AppGroup('swagco', help='SwagCo management commands')


@swagco_cli.command('create-admin')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def create_admin_command(email, password):
    """Create an admin account"""
    from .modules.auth.database import AccountDatabase

    if len(password) < 8:
        raise click.BadParameter('Password must be at least 8 characters', param_hint='--password')
    admin_id = AccountDatabase.create_admin(email, password)
    click.echo(f"Created admin {email} (id {admin_id})")


@swagco_cli.command('cleanup-logs')
@click.option('--days', default=30, show_default=True, help='Keep entries newer than this many days')
def cleanup_logs_command(days):
    """Delete old app_logs entries"""
    from .core import LoggingService

    deleted = LoggingService.cleanup_old_logs(days_to_keep=days)
    click.echo(f"Deleted {deleted} log entries older than {days} days")


@swagco_cli.command('cleanup-pending-orders')
def cleanup_pending_orders_command():
    """Delete pending orders whose payment window has expired"""
    from .modules.pending_orders.models import delete_expired_pending_orders

    deleted = delete_expired_pending_orders()
    click.echo(f"Deleted {deleted} expired pending orders")


def create_app(config=None):
    """Application factory. config is a dict applied before SwagCo initialises."""
    app = Flask(__name__)
    if config:
        app.config.update(config)
    SwagCo(app)
    return app


__all__ = ['SwagCo', 'create_app', 'module_blueprints', '__version__']
