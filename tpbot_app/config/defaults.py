"""Default configuration parameters for the ticket bot."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TimingParams:
    """Waits and polling budgets, all in milliseconds unless noted."""
    # Login
    login_retry_ms: int = 200                  # Re-enter login while cooling down
    login_cooldown_ms: int = 3000              # Min gap between form submissions
    login_submit_delay_ms: int = 100           # Fill -> synthetic Enter

    # Page load detection
    error_dialog_ms: int = 100                 # Wait after dismissing a dialog
    dom_stability_ms: int = 50                 # Settle before re-counting areas
    button_check_ms: int = 100                 # Re-query when area list is empty

    # Top-level guard backoff
    state_transition_ms: int = 200

    # Refresh protocol
    refresh_interval_ms: int = 200
    refresh_wait_ms: int = 200                 # After click, before Loading
    refresh_max_attempts: int = 20             # count, not ms

    # Return to ticket list
    return_check_ms: int = 50
    return_detected_ms: int = 500

    # Quantity selection
    quantity_poll_ms: int = 10
    quantity_max_attempts: int = 500           # count, not ms


@dataclass(frozen=True)
class BotDefaults:
    """Defaults for fields of the run configuration."""
    ticket_count: int = 1
    grab_all: bool = False
    debug: bool = False
    store_key: str = "ticketConfig"            # Key of the persisted record


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    timing: TimingParams
    bot: BotDefaults


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        timing=TimingParams(),
        bot=BotDefaults(),
    )
