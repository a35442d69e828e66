DOMAIN = "shelly_mqtt"

CONF_BROKER_HOST = "broker_host"
CONF_BROKER_PORT = "broker_port"
CONF_BROKER_USERNAME = "broker_username"
CONF_BROKER_PASSWORD = "broker_password"
CONF_BROKER_TLS = "broker_tls"
CONF_TOPIC_ROOT = "topic_root"
CONF_DEBUG_LOGS = "debug_logs"
CONF_DEVICE_MODES = "device_modes"

DEFAULT_BROKER_HOST = "localhost"
DEFAULT_PORT = 1883
DEFAULT_TOPIC_ROOT = "shellies"

# Host-facing device ids are "shelly-mqtt-<instance suffix>"
DEVICE_ID_PREFIX = "shelly-mqtt-"

# --- Topic grammar ------------------------------------------------------------

DEVICE_DELIMITER = "-"
STATUS_SEPARATOR = ":"
INDEXED_KINDS = ("relay", "input", "input_event")
SENSOR_KIND = "sensor"
STATUS_KIND = "status"
BATTERY_STATUS_KEY = "devicepower:0"
LUX_KEY = "lux"
ILLUMINANCE = "illuminance"
POWER_SUBPROPERTY = "power"
POWER_METER_PREFIX = "powerMeter"

# --- Payload decoding ---------------------------------------------------------

INPUT_EVENT_PREFIX = "input_event"
ONLINE = "online"
ONLINE_TRUE = "true"
# Only these payloads mean "true" for boolean properties; everything else is false.
BOOLEAN_TRUE_PAYLOADS = frozenset({"1", "on", "open"})
EVENT_COUNT_KEY = "event_cnt"
EVENT_CODE_KEY = "event"
SHORT_PRESS_CODE = "S"

# --- Device modelling ---------------------------------------------------------

MAX_RELAY_CHANNELS = 4
MODE_RELAY = "relay"
MODE_ROLLER = "roller"
DEVICE_MODES = (MODE_RELAY, MODE_ROLLER)

RELAY_PREFIX = "relay"
RELAY_GROUP = "relay"
POWER_TOTAL = "power"
INTERNAL_TEMPERATURE = "internalTemperature"
INTERNAL_TEMPERATURE_TOPIC = "temperature"
OVERTEMPERATURE = "overtemperature"
ROLLER_POSITION = "position"
ROLLER_ACTIONS = ("open", "stop", "close")

# --- Outbound sub-paths -------------------------------------------------------

RELAY_COMMAND_PATH = "relay/{channel}/command"
ROLLER_COMMAND_PATH = "roller/0/command"
ROLLER_POSITION_PATH = "roller/0/command/pos"
WHITE_SET_PATH = "white/0/set"
