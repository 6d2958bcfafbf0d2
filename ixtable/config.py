FORMAT_VERSION = 1            # bumped when the packed layout changes
EXT_CODE_RECORD = 4           # msgpack ExtType code wrapping one record

# msgpack options shared by pack and unpack
USE_BIN_TYPE = True
RAW = False
STRICT_MAP_KEY = False
