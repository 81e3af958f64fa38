"""
Custom validators for marketplace models and serializers.
"""

import re
from django.core.exceptions import ValidationError


STATE_CODE_RE = re.compile(r'^[A-Z]{2}$')
CITY_RE = re.compile(r"^[a-zA-Z\s'\-]{2,60}$")
PHONE_RE = re.compile(r'^[0-9()+\-\s]{7,20}$')
CURRENCY_RE = re.compile(r'^[A-Z]{3}$')


def validate_phone_number(value):
    """
    Validate phone number format.

    Accepts 7-20 characters made of digits, spaces, dashes, parentheses
    and a plus sign. Empty values are allowed (optional field).

    Valid formats:
    - +1-234-567-8900
    - (212) 555 0101
    - 5550101

    Raises:
        ValidationError: If phone number format is invalid
    """
    if not value:
        return

    if not PHONE_RE.match(value.strip()):
        raise ValidationError(
            'Use a phone number with 7-20 digits and basic punctuation.',
            code='invalid_phone'
        )

    # Must not be all the same digit (like 0000000)
    digits = re.sub(r'\D', '', value)
    if digits and len(set(digits)) == 1:
        raise ValidationError(
            'Phone number cannot be all the same digit.',
            code='invalid_phone_pattern'
        )


def validate_state_code(value):
    """Require a two-letter uppercase state or province code."""
    if not STATE_CODE_RE.match(value or ''):
        raise ValidationError(
            'Use a two-letter state or province code.',
            code='invalid_state'
        )


def validate_city(value):
    """City names contain only letters and common punctuation."""
    if not CITY_RE.match((value or '').strip()):
        raise ValidationError(
            'City must contain only letters and common punctuation.',
            code='invalid_city'
        )


def validate_currency_code(value):
    """ISO-4217 style three letter uppercase code."""
    if not CURRENCY_RE.match(value or ''):
        raise ValidationError(
            'Currency must be a three-letter code such as USD.',
            code='invalid_currency'
        )


def validate_verification_documents(value):
    """
    Validate the document list attached to a verification request.

    Expects 1-3 entries shaped {"name": str, "url": str, "size": number >= 0}.

    Raises:
        ValidationError: If the list or any entry is malformed
    """
    if not isinstance(value, list):
        raise ValidationError('Documents must be a list.', code='invalid_documents')

    if len(value) < 1 or len(value) > 3:
        raise ValidationError(
            'Attach between 1 and 3 documents.',
            code='invalid_document_count'
        )

    for index, document in enumerate(value):
        if not isinstance(document, dict):
            raise ValidationError(
                f'Document {index + 1} must be an object.',
                code='invalid_document'
            )
        if not isinstance(document.get('name'), str) or not isinstance(document.get('url'), str):
            raise ValidationError(
                f'Document {index + 1} requires a name and url.',
                code='invalid_document'
            )
        size = document.get('size')
        if isinstance(size, bool) or not isinstance(size, (int, float)) or size < 0:
            raise ValidationError(
                f'Document {index + 1} size must be a non-negative number.',
                code='invalid_document_size'
            )


def validate_profile_image(image):
    """
    Validate profile image file.

    Checks:
    - File size (max 2.5MB)
    - File format (jpg, jpeg, png, webp)

    Args:
        image: UploadedFile object

    Raises:
        ValidationError: If image is invalid
    """
    if not image:
        return

    max_size = int(2.5 * 1024 * 1024)
    if image.size > max_size:
        raise ValidationError(
            f'Avatar images must be smaller than 2.5MB. Current size: {image.size / (1024 * 1024):.2f}MB',
            code='image_too_large'
        )

    valid_extensions = ['jpg', 'jpeg', 'png', 'webp']
    file_name = image.name.lower()

    if not any(file_name.endswith(f'.{ext}') for ext in valid_extensions):
        raise ValidationError(
            f'Invalid image format. Allowed formats: {", ".join(valid_extensions)}',
            code='invalid_image_format'
        )

    valid_content_types = [
        'image/jpeg',
        'image/png',
        'image/webp'
    ]

    if hasattr(image, 'content_type') and image.content_type:
        if image.content_type not in valid_content_types:
            raise ValidationError(
                f'Invalid image content type: {image.content_type}',
                code='invalid_content_type'
            )
