import numpy as np
import pytest

from fridge_chef.vision_pipeline.decoder import Detection, decode_detections


def _native(rows):
    """Rows of [cx, cy, w, h, p0, p1, ...] → model layout (1, 4 + C, N)."""
    return np.asarray(rows, dtype=np.float32).T[None]


ROWS = [
    [320, 320, 100, 50, 0.1, 0.9, 0.0],   # class 1, kept
    [100, 200, 40, 40, 0.375, 0.2, 0.3],  # below threshold, dropped
    [600, 50, 80, 20, 0.05, 0.1, 0.41],   # class 2, kept
    [10, 10, 5, 5, 0.0, 0.0, 0.0],        # dropped
]


def test_rows_at_or_below_threshold_are_dropped():
    detections = decode_detections(_native(ROWS), 640, 640, 0.4)

    assert [d.class_index for d in detections] == [1, 2]
    for det in detections:
        assert det.score > 0.4


def test_score_and_class_are_exact_max_and_argmax():
    raw = _native(ROWS)
    detections = decode_detections(raw, 640, 640, 0.4)

    probs = raw[0, 4:, :].T
    assert detections[0].score == float(probs[0].max())
    assert detections[0].class_index == int(probs[0].argmax())
    assert detections[1].score == float(probs[2].max())
    assert detections[1].class_index == int(probs[2].argmax())


def test_center_box_is_converted_to_corner_form():
    det = decode_detections(_native(ROWS[:1]), 640, 640, 0.4)[0]

    assert det == Detection(box=(270.0, 295.0, 100.0, 50.0), score=det.score, class_index=1)


def test_rescale_is_independent_per_axis():
    base = decode_detections(_native(ROWS), 640, 640, 0.4)
    scaled = decode_detections(_native(ROWS), 1280, 960, 0.4)

    assert len(base) == len(scaled)
    for b, s in zip(base, scaled):
        bx, by, bw, bh = b.box
        sx, sy, sw, sh = s.box
        assert sx == pytest.approx(bx * 2)
        assert sw == pytest.approx(bw * 2)
        assert sy == pytest.approx(by * 1.5)
        assert sh == pytest.approx(bh * 1.5)


def test_native_box_order_is_kept_and_overlaps_are_not_suppressed():
    rows = [
        [100, 100, 50, 50, 0.0, 0.8],
        [102, 101, 50, 50, 0.7, 0.0],
        [101, 100, 52, 50, 0.0, 0.95],
    ]
    detections = decode_detections(_native(rows), 640, 640, 0.4)

    assert [d.class_index for d in detections] == [1, 0, 1]
    assert [d.score for d in detections] == pytest.approx([0.8, 0.7, 0.95])


def test_custom_threshold():
    assert decode_detections(_native(ROWS), 640, 640, 0.95) == []
    assert len(decode_detections(_native(ROWS), 640, 640, 0.0)) == 3


def test_empty_box_axis_yields_no_detections():
    raw = np.zeros((1, 7, 0), dtype=np.float32)
    assert decode_detections(raw, 640, 480) == []


@pytest.mark.parametrize(
    "shape",
    [
        (7, 10),          # no batch axis
        (2, 7, 10),       # batch of two
        (1, 4, 10),       # no class scores
        (1, 1, 7, 10),    # extra axis
    ],
)
def test_malformed_shapes_fail_fast(shape):
    with pytest.raises(ValueError):
        decode_detections(np.zeros(shape, dtype=np.float32), 640, 640)


def test_invalid_image_size_fails_fast():
    with pytest.raises(ValueError):
        decode_detections(_native(ROWS), 0, 640)


def test_score_equal_to_threshold_is_rejected():
    rows = [
        [50, 50, 10, 10, 0.5, 0.25],
        [50, 50, 10, 10, 0.25, 0.75],
    ]
    detections = decode_detections(_native(rows), 640, 640, 0.5)

    assert [d.class_index for d in detections] == [1]
