"""DCC Ledger application wire constants.

These must match the on-device application byte for byte.
"""

CLA = 0x80

INS_SIGN = 0x02
INS_GET_PUBLIC_KEY = 0x04
INS_GET_VERSION = 0x06

P1_CONFIRM = 0x80
P1_NO_CONFIRM = 0x00

# Signing chunk P1
P1_MORE = 0x00
P1_LAST = 0x80

SW_OK = 0x9000

MAX_APDU_SIZE = 128
MAX_CHUNK_SIZE = MAX_APDU_SIZE - 5

PUBLIC_KEY_LENGTH = 32
ADDRESS_LENGTH = 35
STATUS_LENGTH = 2

# Signing type codes for non-transaction payloads
ORDER = 0xFC
SOME_DATA = 0xFD
REQUEST = 0xFE
MESSAGE = 0xFF

DCC_PRECISION = 8

# 'L'
MAIN_NET_CODE = 76

# Name of the application installed on the device. DecentralChain reuses
# the Waves app, so this stays "WAVES".
APP_ID = "WAVES"

# Coin type 5741564 is what the device derives with; existing addresses
# depend on it.
ACCOUNT_PATH_PREFIX = "44'/5741564'/0'/0'/"

HARDENED = 0x80000000
MAX_INDEX = 0x7FFFFFFF

# Comparable firmware numbers (major*10000 + minor*100 + patch)
FW_1_1_0 = 10100
FW_1_2_0 = 10200
