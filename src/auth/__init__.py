from src.auth.dependencies import get_settings, require_credentials


__all__ = ['get_settings', 'require_credentials']
