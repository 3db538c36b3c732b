# =============================================================================
# core/services/onboarding_resolver.py - Post-Login Destination
# =============================================================================
# Maps an onboarding step to where the browser should land after sign-in.
#
# Only "complete vs. not complete" matters here. Intermediate steps do not
# resume at their own page through this path; the onboarding pages take
# it from the entry point.
# =============================================================================

from core.models.profile import OnboardingStep

LANDING_PATH = "/home"
ONBOARDING_ENTRY_PATH = "/interests"


def resolve_onboarding_destination(
    step: OnboardingStep | str | None,
    landing_path: str = LANDING_PATH,
    onboarding_path: str = ONBOARDING_ENTRY_PATH,
) -> str:
    """
    Pick the post-login destination for an onboarding step.

    Args:
        step: Current onboarding step (None when the profile is missing)
        landing_path: Destination once onboarding is complete
        onboarding_path: Destination for everyone else

    Returns:
        Relative redirect path

    Example:
        resolve_onboarding_destination("complete")       # "/home"
        resolve_onboarding_destination("deal_breakers")  # "/interests"
        resolve_onboarding_destination(None)             # "/interests"
    """
    if OnboardingStep.parse(step) == OnboardingStep.COMPLETE:
        return landing_path
    return onboarding_path
