"""
Storage Utility
===============

Shared file upload with cloud (DigitalOcean Spaces) / local branching.
Used for order artwork, vectorized SVGs and the saved-artwork library.
"""

import os
import boto3
from flask import current_app

from .config import get_config_value

CONTENT_TYPES = {
    'jpg': 'image/jpeg', 'jpeg': 'image/jpeg',
    'png': 'image/png', 'gif': 'image/gif', 'webp': 'image/webp',
    'svg': 'image/svg+xml', 'pdf': 'application/pdf',
    'ai': 'application/postscript', 'eps': 'application/postscript',
}


def is_cloud_storage():
    """Check if using cloud storage"""
    return get_config_value('STORAGE_TYPE', 'local') == 'cloud'


def get_do_spaces_config():
    """Get DigitalOcean Spaces configuration"""
    return {
        'region': get_config_value('DO_SPACES_REGION'),
        'space_name': get_config_value('DO_SPACES_NAME'),
        'access_key': get_config_value('DO_SPACES_KEY'),
        'secret_key': get_config_value('DO_SPACES_SECRET'),
    }


def guess_content_type(filename):
    ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
    return CONTENT_TYPES.get(ext, 'application/octet-stream')


def upload_file(file_bytes, filename, subfolder):
    """Upload file to cloud storage or local filesystem.

    Args:
        file_bytes: Raw bytes of the file.
        filename: Target filename (e.g. "front_1700000000_logo.png").
        subfolder: Subfolder name (e.g. "artwork/<order_id>", "saved-artwork/<customer_id>").

    Returns:
        Public URL (cloud) or local path like "/static/artwork/abc/logo.png" (local).
    """
    if is_cloud_storage():
        return _upload_to_spaces(file_bytes, filename, subfolder)
    return _save_locally(file_bytes, filename, subfolder)


def _spaces_client(config):
    region = config['region']
    return boto3.client(
        's3',
        region_name=region,
        endpoint_url=f"https://{region}.digitaloceanspaces.com",
        aws_access_key_id=config['access_key'],
        aws_secret_access_key=config['secret_key'],
    )


def _object_key(filename, subfolder):
    app_prefix = get_config_value('SPACES_FOLDER', 'uploads')
    return f"{app_prefix}/{subfolder}/{filename}"


def _upload_to_spaces(file_bytes, filename, subfolder):
    """Upload to DigitalOcean Spaces via boto3."""
    config = get_do_spaces_config()
    object_key = _object_key(filename, subfolder)

    client = _spaces_client(config)
    client.put_object(
        Bucket=config['space_name'],
        Key=object_key,
        Body=file_bytes,
        ACL='public-read',
        ContentType=guess_content_type(filename),
    )

    return f"https://{config['space_name']}.{config['region']}.digitaloceanspaces.com/{object_key}"


def _save_locally(file_bytes, filename, subfolder):
    """Save to local static folder."""
    upload_dir = os.path.join(current_app.static_folder, subfolder)
    os.makedirs(upload_dir, exist_ok=True)
    filepath = os.path.join(upload_dir, filename)
    with open(filepath, 'wb') as f:
        f.write(file_bytes)
    return f"/static/{subfolder}/{filename}"


def read_file(url):
    """Read back the bytes of a previously uploaded file.

    Local paths are read from the static folder; Spaces URLs are fetched with boto3.
    """
    if url.startswith('/static/'):
        relative = url[len('/static/'):]
        with open(os.path.join(current_app.static_folder, relative), 'rb') as f:
            return f.read()

    config = get_do_spaces_config()
    object_key = url.split('.digitaloceanspaces.com/', 1)[-1]
    client = _spaces_client(config)
    response = client.get_object(Bucket=config['space_name'], Key=object_key)
    return response['Body'].read()


def delete_file(url):
    """Delete a file by its URL. Returns True on success."""
    if url.startswith('/static/'):
        filepath = os.path.join(current_app.static_folder, url[len('/static/'):])
        if os.path.exists(filepath):
            os.remove(filepath)
            return True
        return False

    config = get_do_spaces_config()
    object_key = url.split('.digitaloceanspaces.com/', 1)[-1]
    client = _spaces_client(config)
    client.delete_object(Bucket=config['space_name'], Key=object_key)
    return True
