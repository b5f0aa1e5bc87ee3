from .provider_usage_tracker import ProviderCall, ProviderUsageTracker, usage_tracker

__all__ = ['ProviderCall', 'ProviderUsageTracker', 'usage_tracker']
