from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ascender.errors import ValidationError

# ==========================================
# UTILITÁRIOS DE VALIDAÇÃO
# ==========================================


def parse_date(value, field_label='Data'):
    """Converte 'YYYY-MM-DD' em date. Vazio vira None."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip()[:10], '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f"{field_label} inválida: {value}")


def to_cents(value):
    """Valor em reais (ex.: '150,50') para centavos inteiros, arredondando meio para cima."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValidationError("Valor de investimento inválido")
    try:
        amount = Decimal(str(value).strip().replace(',', '.'))
    except InvalidOperation:
        raise ValidationError("Valor de investimento inválido")
    if not amount.is_finite() or amount < 0:
        raise ValidationError("Valor de investimento inválido")
    return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def parse_int(value, field_label='Valor'):
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_label} inválido")
    # Frações não são truncadas
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_label} inválido")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_label} inválido")


def parse_id_list(values):
    """Aceita lista, '1,2,3' ou valores repetidos; remove duplicados mantendo a ordem."""
    if values is None:
        return []
    if isinstance(values, (str, int)):
        values = [values]

    ids = []
    for value in values:
        parts = value.split(',') if isinstance(value, str) else [value]
        for part in parts:
            if isinstance(part, str):
                part = part.strip()
                if not part:
                    continue
            parsed = parse_int(part, 'Identificador')
            if parsed not in ids:
                ids.append(parsed)
    return ids


def parse_bool(value, default=False):
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'on', 'yes', 'sim')


def clean_text(value):
    """Texto aparado; vazio vira None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None
