"""Process-wide per-share dividend cache.

Key space is ``year -> per-share value``. Entries never expire; they are
dropped explicitly when the profit pool or an eligibility record of that year
changes (see ``coopledger.services.dividends``).
"""
import threading

class PerShareCache:
    """Thread-safe year-keyed cache, bound to the app like the other extensions"""

    def __init__(self, app=None):
        self._values = {}
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.extensions['per_share_cache'] = self
        if app.config.get('TESTING'):
            self.clear()

    def get(self, year):
        with self._lock:
            return self._values.get(year)

    def set(self, year, value):
        with self._lock:
            self._values[year] = value

    def invalidate(self, year):
        with self._lock:
            return self._values.pop(year, None) is not None

    def clear(self):
        with self._lock:
            self._values.clear()

    def __contains__(self, year):
        with self._lock:
            return year in self._values
