# Container magic (little-endian u32 at offset 0)
SFROM_MAGIC = 0x00000100

# Fixed region sizes
HEADER_SIZE = 0x30  # 48 bytes
FOOTER_SIZE = 0x23  # 35 bytes; 27 documented + 8 padding
FOOTER_PADDING_SIZE = 8
PLATFORM_ID_SIZE = 8

# Largest payload a u24 length prefix can describe
MAX_U24 = 0xFFFFFF

# Frame rates
FPS_NTSC = 0x3C  # 60
FPS_PAL = 0x32   # 50

# ROM addressing modes
ROM_TYPE_LOROM = 0x14
ROM_TYPE_HIROM = 0x15

ROM_TYPE_NAMES = {
    ROM_TYPE_LOROM: "lorom",
    ROM_TYPE_HIROM: "hirom",
}

# Enhancement chips
CHIP_NONE = 0x00
CHIP_DSP1 = 0x02
CHIP_SDD1 = 0x03
CHIP_CX4 = 0x04
CHIP_MEGAMANX = 0x05  # copy protection fix
CHIP_SA1_1 = 0x06
CHIP_SA1_2 = 0x07
CHIP_SA1_3 = 0x08
CHIP_SA1_4 = 0x09
CHIP_SA1_5 = 0x0A
CHIP_SA1_6 = 0x0B
CHIP_SUPERFX = 0x0C

CHIP_NAMES = {
    CHIP_NONE: "none",
    CHIP_DSP1: "dsp1",
    CHIP_SDD1: "sdd1",
    CHIP_CX4: "cx4",
    CHIP_MEGAMANX: "megamanx",
    CHIP_SA1_1: "sa1-1",
    CHIP_SA1_2: "sa1-2",
    CHIP_SA1_3: "sa1-3",
    CHIP_SA1_4: "sa1-4",
    CHIP_SA1_5: "sa1-5",
    CHIP_SA1_6: "sa1-6",
    CHIP_SUPERFX: "superfx",
}

# Footer words conventionally fixed at 1
FOOTER_UNKNOWN_DEFAULT = 1

# Tag codes, in canonical order
TAG_ARMET_THRESHOLD = "A"
TAG_CODEC_DATA = "D"
TAG_PRESET_ID = "G"
TAG_FLAGS = "P"
TAG_UNKNOWN_S = "S"
TAG_SUPERFX_CLOCK = "U"
TAG_ARMET_VERSION = "a"
TAG_SNES_HEADER_LOCATION = "c"
TAG_UNKNOWN_D = "d"
TAG_ENHANCEMENT_CHIP = "e"
TAG_RESOLUTION_RATIO = "h"
TAG_UNKNOWN_J = "j"
TAG_MOUSE_FLAG = "m"
TAG_MAX_PLAYERS = "p"
TAG_VISIBLE_HEIGHT = "r"
TAG_UNKNOWN_T = "t"
TAG_VOLUME = "v"

ARMET_THRESHOLD_SIZE = 3
PRESET_TAG_SKIP = 3
