from azind.core.use_cases.replay import ReplayPlan, ReplayService

__all__ = ["ReplayPlan", "ReplayService"]
