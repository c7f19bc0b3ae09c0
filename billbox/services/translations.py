"""
Interface strings for the supported languages
"""

LANGUAGES = ('en', 'hi', 'es')

TRANSLATIONS = {
    'en': {
        'dashboard': 'Dashboard',
        'export': 'Export',
        'logout': 'Logout',
        'hello': 'Hello',
        'month_spent': 'This Month',
        'of_budget': 'of budget',
        'income': 'Income',
        'bills_due': 'Bills Due',
        'insights': 'Insights',
        'upcoming_bills': 'Upcoming Bills',
        'no_bills_due': 'No bills due soon',
        'recent_expenses': 'Recent Expenses',
    },
    'hi': {
        'dashboard': 'डैशबोर्ड',
        'export': 'निर्यात',
        'logout': 'लॉग आउट',
        'hello': 'नमस्ते',
        'month_spent': 'इस महीने',
        'of_budget': 'बजट का',
        'income': 'आय',
        'bills_due': 'देय बिल',
        'insights': 'सुझाव',
        'upcoming_bills': 'आने वाले बिल',
        'no_bills_due': 'जल्दी कोई बिल नहीं',
        'recent_expenses': 'हाल के खर्च',
    },
    'es': {
        'dashboard': 'Panel',
        'export': 'Exportar',
        'logout': 'Cerrar sesión',
        'hello': 'Hola',
        'month_spent': 'Este Mes',
        'of_budget': 'del presupuesto',
        'income': 'Ingresos',
        'bills_due': 'Facturas Pendientes',
        'insights': 'Consejos',
        'upcoming_bills': 'Próximas Facturas',
        'no_bills_due': 'No hay facturas próximas',
        'recent_expenses': 'Gastos Recientes',
    },
}


def translate(key, language='en'):
    """Look up a string, falling back to English and then to the key itself"""
    strings = TRANSLATIONS.get(language) or TRANSLATIONS['en']
    return strings.get(key) or TRANSLATIONS['en'].get(key, key)
