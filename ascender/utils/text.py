import re
import unicodedata

_NON_SLUG_CHARS = re.compile(r'[^a-z0-9]+')


def remove_accents(text):
    nfkd = unicodedata.normalize('NFD', text)
    return ''.join([c for c in nfkd if not unicodedata.category(c).startswith('M')])


def slugify(text):
    """Gera o slug de uma tag: minúsculo, sem acentos, hífen no lugar de qualquer outro caractere."""
    if not text:
        return ''
    slug = remove_accents(text.lower())
    slug = _NON_SLUG_CHARS.sub('-', slug)
    return slug.strip('-')


def normalize_search(text):
    return remove_accents((text or '').strip().lower())
