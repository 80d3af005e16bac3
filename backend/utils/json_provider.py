# utils/json_provider.py
from datetime import date, datetime, timezone
from flask.json.provider import DefaultJSONProvider


class CustomJSONProvider(DefaultJSONProvider):
    """Custom JSON provider that formats timestamps as ISO-8601 and dates as YYYY-MM-DD"""
    def default(self, obj):
        if isinstance(obj, datetime):
            if obj.tzinfo is not None:
                obj = obj.astimezone(timezone.utc)
                return obj.replace(tzinfo=None).isoformat() + 'Z'
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.strftime('%Y-%m-%d')
        return super().default(obj)
