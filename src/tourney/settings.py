"""
Tournament manager settings, stored in the 'settings' key and merged with defaults.
"""


def get_default_settings() -> dict:
    """Return default settings."""
    return {
        'win_points': 3,
        'reminder_interval_seconds': 30,
        'reminder_window_minutes': 60,
        'auto_schedule_spacing_minutes': 60,
    }


def load_settings(store) -> dict:
    """Load settings from the store, merging with defaults so all keys exist."""
    defaults = get_default_settings()
    data = store.get('settings', None)
    if not isinstance(data, dict):
        return defaults
    for key, value in defaults.items():
        if key not in data:
            data[key] = value
    return data


def save_settings(store, settings: dict):
    store.set('settings', settings)
