from __future__ import annotations

from pathlib import Path

# Wire schema of a serialized record-carrying output. Bumping this breaks
# interoperability with every node validating the same chain.
RECORD_SCHEMA_VERSION = "1"
TRADE_DEFINITION_SCHEMA_VERSION = "1"

# Lifecycle states, in order.
STATE_PROPOSED = "PROPOSED"
STATE_AGREED = "AGREED"
STATE_EXECUTED = "EXECUTED"
STATE_SETTLED = "SETTLED"

# Signer roles.
ROLE_TRADER_A = "trader_a"
ROLE_TRADER_B = "trader_b"
ROLE_PLATFORM = "platform"
SIGNER_ROLES = (ROLE_TRADER_A, ROLE_TRADER_B, ROLE_PLATFORM)

# Transitions.
TRANSITION_PROPOSE = "propose"
TRANSITION_APPROVE = "approve"
TRANSITION_EXECUTE = "execute"
TRANSITION_SETTLE = "settle"
TRANSITION_NAMES = (
    TRANSITION_PROPOSE,
    TRANSITION_APPROVE,
    TRANSITION_EXECUTE,
    TRANSITION_SETTLE,
)

# Action tag signed by the platform when authoring the genesis output.
ACTION_OPEN = "open"

ED25519_PUBLIC_KEY_BYTES = 32
GENESIS_NONCE_BYTES = 16

STATE_DIR = Path(".tradeline")
OUTPUTS_DIR = STATE_DIR / "outputs"
SPENT_DIR = STATE_DIR / "spent"
KEYS_DIR = STATE_DIR / "keys"
REPORTS_DIR = STATE_DIR / "reports"
CONFIG_FILE = STATE_DIR / "config.yaml"

ENV_STATE_DIR = "TRADELINE_STATE_DIR"
ENV_LOG_LEVEL = "TRADELINE_LOG_LEVEL"

FINALITY_HOOK_GROUP = "tradeline.finality_hooks"

EXIT_SUCCESS = 0
EXIT_REJECTED = 1
EXIT_INTERNAL_ERROR = 2
