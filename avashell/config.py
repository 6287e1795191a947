# Working directory for state files
AVA_DIR = "."
# Default node address
DEFAULT_NODE_HOST = "127.0.0.1"
# Default node port
DEFAULT_NODE_PORT = 9650
# Default node protocol
DEFAULT_NODE_PROTOCOL = "http"
# JSON-RPC request timeout (seconds)
DEFAULT_TIMEOUT = 30
# Pending transaction poll interval (seconds)
DEFAULT_POLL_INTERVAL = 5
# Config persistence path
CONFIG_SAVE_PATH = f"{AVA_DIR}/avashell.json"
# Prompt history
HISTORY_PATH = f"{AVA_DIR}/.avashell_history"
# Debug log (JSONL), switched on by DEBUG_ENABLED in the config file
DEBUG_LOG_PATH = f"{AVA_DIR}/avashell.debug.jsonl"

# Environment overrides
ENV_NODE_HOST = "AVA_NODE_HOST"
ENV_NODE_PORT = "AVA_NODE_PORT"
ENV_NODE_PROTOCOL = "AVA_NODE_PROTOCOL"
ENV_KEYSTORE_USERNAME = "AVA_KEYSTORE_USERNAME"
ENV_KEYSTORE_PASSWORD = "AVA_KEYSTORE_PASSWORD"
