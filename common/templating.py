"""
GoldBod Assay Office - Template Configuration
==============================================
Jinja2 templates setup with custom filters, used for printable reports and
invoices.
"""

from fastapi.templating import Jinja2Templates

from config.settings import TEMPLATE_DIR
from common.helpers import format_money, format_grams, format_ounces, format_date, now_utc

templates = Jinja2Templates(directory=TEMPLATE_DIR)


def render(template_name: str, **context) -> str:
    """Render a template to a string (for HTML documents returned as-is)."""
    return templates.get_template(template_name).render(**context)


# ==========================================
# Register Filters & Globals
# ==========================================

# Filters (usage in template: {{ value | money }})
templates.env.filters["money"] = format_money
templates.env.filters["grams"] = format_grams
templates.env.filters["ounces"] = format_ounces
templates.env.filters["date_only"] = format_date

templates.env.globals["now"] = now_utc
templates.env.globals["OFFICE_NAME"] = "Ghana Gold Board - Assay Office"
