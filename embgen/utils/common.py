FLASH_BLOCK_SIZE = 1024
FLASH_BLOCK_MASK = FLASH_BLOCK_SIZE - 1

CCID_ISSUER_LEN = 13

U8_MAX = 0xff
U16_MAX = 0xffff
U32_MAX = 0xffff_ffff

GENERATED_BANNER_LINES = [
    "DO NOT EDIT THIS FILE",
    "This file was generated by embgen",
]


def is_block_aligned(value: int) -> bool:
    return value & FLASH_BLOCK_MASK == 0


def to_kib(num_bytes: int) -> int:
    return num_bytes >> 10
