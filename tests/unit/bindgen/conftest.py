"""Fixtures for the binding generator tests."""

import pytest

from bearssl_sys.bindgen import BindgenOptions, MacroConstant, Translator

LINUX_TARGET = "x86_64-unknown-linux-gnu"

# Preprocessed excerpt of the BearSSL hash API plus declarations that must
# be filtered out.
PREPROCESSED = """
typedef int size_t;
typedef int uint32_t;
typedef int uint64_t;

void *memcpy(void *dst, const void *src, size_t len);
int other_function(int x);

typedef struct br_hash_class_ br_hash_class;
struct br_hash_class_ {
    size_t context_size;
    uint32_t desc;
    void (*init)(const br_hash_class **ctx);
};

typedef struct {
    const br_hash_class *vtable;
    unsigned char buf[64];
    uint64_t count;
    uint32_t val[8];
} br_sha224_context;
typedef br_sha224_context br_sha256_context;

extern const br_hash_class br_sha224_vtable;

void br_sha224_init(br_sha224_context *ctx);
void br_sha224_update(br_sha224_context *ctx, const void *data, size_t len);
void br_sha224_out(const br_sha224_context *ctx, void *out);
void br_sha224_init(br_sha224_context *ctx);

static inline size_t
br_helper(void)
{
    return 0;
}

typedef enum {
    BR_MODE_A,
    BR_MODE_B = 5,
    BR_MODE_C
} br_mode;

void br_hmac_out(const void *ctx, unsigned char out[32]);
"""

DEFINES = """\
#define BR_HASHDESC_ID_OFF 0
#define BR_SSL_BUFSIZE_INPUT (16384 + 325)
#define br_sha256_update br_sha224_update
"""


@pytest.fixture
def options():
    return BindgenOptions(target=LINUX_TARGET)


@pytest.fixture
def translation(options):
    return Translator(options).translate(PREPROCESSED)


@pytest.fixture
def constants():
    return [
        MacroConstant("BR_HASHDESC_ID_OFF", 0, "int"),
        MacroConstant("BR_SSL_BUFSIZE_INPUT", 16709, "int"),
    ]


@pytest.fixture
def preprocessed():
    return PREPROCESSED


@pytest.fixture
def defines():
    return DEFINES
