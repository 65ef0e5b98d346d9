"""
Slug generation utility
"""
import re
import unicodedata


def generate_slug(text: str) -> str:
    """
    Generate a URL-friendly slug from text

    Args:
        text: Text to convert to slug

    Returns:
        URL-friendly slug
    """
    text = text.lower()

    # Remove accents/diacritics
    text = unicodedata.normalize('NFKD', text)
    text = text.encode('ascii', 'ignore').decode('ascii')

    # Replace spaces and special characters with hyphens
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[-\s]+', '-', text)

    return text.strip('-')


def image_path_for(name: str, extension: str = "webp") -> str:
    """Asset path the storefront serves a product image from"""
    return f"/{generate_slug(name)}.{extension}"
