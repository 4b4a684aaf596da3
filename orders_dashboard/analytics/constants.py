# orders_dashboard/analytics/constants.py
"""
Constants for the Orders Analytics Dashboard

VERSION: 1.2.0
CHANGELOG:
- v1.2.0: Added English month names and number conventions (DASHBOARD_LOCALE=en)
- v1.1.0: Added route (query string) parameter keys
"""

# =====================================================================
# ROLE DEFINITIONS
# =====================================================================

# Roles allowed to filter analytics by customer
CUSTOMER_FILTER_ROLES = ['editor', 'owner']

# =====================================================================
# TIMING
# =====================================================================

DEFAULT_TTL_MS = 90_000

# =====================================================================
# SERIES
# =====================================================================

SERIES_KPI = 'kpi'
SERIES_TREND = 'trend'
SERIES_DAILY = 'daily'

SERIES_LABELS = {
    SERIES_KPI: 'KPI',
    SERIES_TREND: 'Trend m/m',
    SERIES_DAILY: 'Dane dzienne',
}

# =====================================================================
# ROUTE (QUERY STRING) KEYS
# =====================================================================

PARAM_DATE_FROM = 'dateFrom'
PARAM_DATE_TO = 'dateTo'
PARAM_CUSTOMER_ID = 'customerId'
PARAM_YEAR = 'year'
PARAM_MONTH = 'month'

# =====================================================================
# DISPLAY
# =====================================================================

PLACEHOLDER = '—'
ISO_DATE_PATTERN = r'^\d{4}-\d{2}-\d{2}$'

DEFAULT_LOCALE = 'pl'

MONTH_NAMES = {
    'pl': [
        'styczeń', 'luty', 'marzec', 'kwiecień', 'maj', 'czerwiec',
        'lipiec', 'sierpień', 'wrzesień', 'październik', 'listopad', 'grudzień',
    ],
    'en': [
        'January', 'February', 'March', 'April', 'May', 'June',
        'July', 'August', 'September', 'October', 'November', 'December',
    ],
}

# group separator, decimal separator, currency pattern
NUMBER_CONVENTIONS = {
    'pl': {'group': ' ', 'decimal': ',', 'currency': '{value} zł'},
    'en': {'group': ',', 'decimal': '.', 'currency': 'PLN {value}'},
}

# =====================================================================
# KPI CARDS
# =====================================================================

KPI_CARDS = {
    'pl': {
        'sumNet': {
            'label': 'Suma netto (PLN)',
            'tooltip': 'Łączna wartość netto zamówień w zadanym zakresie',
        },
        'ordersCount': {
            'label': 'Liczba zamówień',
            'tooltip': 'Łączna liczba zamówień',
        },
        'avgOrder': {
            'label': 'Średnia wartość zamówienia',
            'tooltip': 'Średnia wartość = suma netto / liczba zamówień',
        },
    },
    'en': {
        'sumNet': {
            'label': 'Net total (PLN)',
            'tooltip': 'Total net value of orders in the selected range',
        },
        'ordersCount': {
            'label': 'Orders',
            'tooltip': 'Total number of orders',
        },
        'avgOrder': {
            'label': 'Average order value',
            'tooltip': 'Average value = net total / number of orders',
        },
    },
}

# =====================================================================
# USER-FACING MESSAGES
# =====================================================================

MESSAGES = {
    'invalid_range': (
        'Zakres dat jest nieprawidłowy. Data początkowa nie może przekraczać końcowej - '
        'zakres został skorygowany.'
    ),
    'month_unavailable': 'Wybrany miesiąc nie jest dostępny w aktualnym trendzie.',
    'manual_refresh_title': 'Odświeżanie nie powiodło się',
    'manual_refresh_error': 'Nie udało się odświeżyć wszystkich danych. Spróbuj ponownie.',
    'fetch_error_title': 'Nie udało się pobrać danych ({context})',
    'fetch_error_fallback': 'Spróbuj ponownie później lub zmień zakres filtrów.',
}
