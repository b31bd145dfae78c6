from app.shopdesk.services.scanner import BarcodeScanBuffer


def _feed(buffer, keys, start=0, step=10):
    result = None
    for offset, key in enumerate(keys):
        code = buffer.feed(key, start + offset * step)
        if code is not None:
            result = code
    return result


def test_fast_keys_followed_by_enter_emit_barcode():
    buffer = BarcodeScanBuffer(max_interval_ms=50)

    assert _feed(buffer, list("FS12345") + ["Enter"]) == "FS12345"


def test_slow_typing_never_emits_barcode():
    buffer = BarcodeScanBuffer(max_interval_ms=50)

    assert _feed(buffer, list("FS12345") + ["Enter"], step=120) is None


def test_short_codes_are_ignored():
    buffer = BarcodeScanBuffer(max_interval_ms=50)

    assert _feed(buffer, list("123") + ["Enter"]) is None


def test_pause_starts_a_new_buffer():
    buffer = BarcodeScanBuffer(max_interval_ms=50)
    for index, key in enumerate("xyz"):
        buffer.feed(key, index * 10)

    assert _feed(buffer, list("98765") + ["Enter"], start=1000) == "98765"


def test_threshold_is_configurable():
    relaxed = BarcodeScanBuffer(max_interval_ms=200)

    assert _feed(relaxed, list("ABCD1") + ["Enter"], step=120) == "ABCD1"


def test_modifier_keys_are_skipped():
    buffer = BarcodeScanBuffer(max_interval_ms=50)

    assert _feed(buffer, ["Shift", "A", "B", "C", "D", "Enter"]) == "ABCD"
