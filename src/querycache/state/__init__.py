"""State/store layer.

This package owns every per-key ``QueryState`` and the listeners observing
it. Only the store is allowed to replace a state, and every replacement is
announced through the notifier.
"""
