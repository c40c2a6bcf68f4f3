from __future__ import annotations

from pathlib import Path

from vidctx.core.pipeline.correlator import correlate, find_closest_segment, parse_transcript
from vidctx.data.models import FrameSample, TranscriptSegment


def _frame(timestamp: float) -> FrameSample:
    return FrameSample(timestamp=timestamp, path=Path(f"frame-{timestamp:g}.png"))


def test_parse_and_match_within_tolerance() -> None:
    segments = parse_transcript("[00:03] a\n[00:10] b")

    assert segments == [TranscriptSegment(timestamp=3, text="a"), TranscriptSegment(timestamp=10, text="b")]

    segment, distance = find_closest_segment(segments, 4)
    assert segment is not None and segment.text == "a"
    assert distance == 1

    assert find_closest_segment(segments, 50) == (None, None)


def test_parse_ignores_non_matching_lines_and_trims() -> None:
    transcript = "\n".join(
        [
            "Here is your transcript:",
            "[01:05]   the search feature isn't working   ",
            "[1:05] single digit minutes are not the format",
            "[00:07]",
            "- [00:20] bulleted lines still count",
        ]
    )

    segments = parse_transcript(transcript)

    assert [(s.timestamp, s.text) for s in segments] == [
        (65, "the search feature isn't working"),
        (20, "bulleted lines still count"),
    ]


def test_sentinels_and_garbage_produce_no_segments() -> None:
    assert parse_transcript("[Audio is silent - no sound detected]") == []
    assert parse_transcript("") == []
    assert parse_transcript("no timestamps at all\n\n") == []


def test_first_equally_close_segment_wins() -> None:
    segments = parse_transcript("[00:08] before\n[00:12] after")

    segment, distance = find_closest_segment(segments, 10)

    assert segment is not None and segment.text == "before"
    assert distance == 2


def test_boundary_distance_is_inclusive() -> None:
    segments = parse_transcript("[00:10] edge")

    assert find_closest_segment(segments, 5)[0] is not None
    assert find_closest_segment(segments, 4.9)[0] is None


def test_correlate_orders_by_frame_timestamp() -> None:
    segments = parse_transcript("[00:05] fix this button")

    entries = correlate([_frame(17), _frame(2), _frame(12), _frame(7)], segments)

    assert [entry.frame.timestamp for entry in entries] == [2, 7, 12, 17]
    assert [entry.matched for entry in entries] == [True, True, False, False]
    assert entries[1].distance == 2
    assert entries[2].segment is None and entries[2].distance is None


def test_correlate_without_segments_leaves_frames_unmatched() -> None:
    entries = correlate([_frame(1.5), _frame(4.5)], [])

    assert all(not entry.matched for entry in entries)
