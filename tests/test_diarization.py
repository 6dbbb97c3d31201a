import pytest

from transcript_intel.diarization import (
    calculate_speaker_stats, calculate_talk_ratio, get_dominant_speaker,
    group_words_by_speaker, merge_adjacent_segments, normalize_response, order_segments,
    segment_by_duration, speaker_label,
)
from transcript_intel.domain.models import Speaker
from transcript_intel.errors import MalformedTranscriptError

from conftest import make_segment, make_words, vendor_response, vendor_word


def _utterance(speaker, start, end, words, transcript=None):
    return {
        "speaker": speaker,
        "start": start,
        "end": end,
        "confidence": 0.5,
        "transcript": transcript or " ".join(w["word"] for w in words),
        "words": words,
    }


def test_speaker_labels_are_one_based():
    assert speaker_label(0) == "Speaker 1"
    assert speaker_label(2) == "Speaker 3"


def test_utterances_map_and_merge_same_speaker():
    utterances = [
        _utterance(0, 0.0, 2.0, [
            vendor_word("Hi", 0.0, 0.5, 0.9, 0),
            vendor_word("I'm", 0.6, 1.0, 0.8, 0),
            vendor_word("Sarah", 1.1, 2.0, 1.0, 0),
        ]),
        _utterance(0, 2.5, 4.0, [vendor_word("welcome", 2.5, 4.0, 0.7, 0)]),
        _utterance(1, 5.0, 6.0, [vendor_word("thanks", 5.0, 6.0, 0.6, 1)]),
    ]
    transcript = normalize_response(vendor_response(utterances=utterances, duration=6.0))

    assert [s.speaker_label for s in transcript.segments] == ["Speaker 1", "Speaker 2"]
    first = transcript.segments[0]
    assert first.text == "Hi I'm Sarah welcome"
    assert (first.start_ms, first.end_ms) == (0, 4000)
    assert first.confidence == pytest.approx((0.9 + 0.8 + 1.0 + 0.7) / 4)
    assert transcript.duration_ms == 6000
    assert [s.label for s in transcript.speakers] == ["Speaker 1", "Speaker 2"]
    assert transcript.speakers[0].word_count == 4


def test_utterance_without_words_uses_vendor_confidence():
    utterances = [_utterance(0, 0.0, 1.0, [], transcript="hello")]
    transcript = normalize_response(vendor_response(utterances=utterances))
    assert transcript.segments[0].confidence == 0.5


def test_word_speaker_tags_start_new_segment_on_change():
    words = [
        vendor_word("a", 0.0, 0.4, 0.9, 0),
        vendor_word("b", 0.5, 0.9, 0.9, 0),
        vendor_word("c", 1.0, 1.4, 0.9, 1),
        vendor_word("d", 1.5, 1.9, 0.9, 0),
    ]
    transcript = normalize_response(vendor_response(words=words))
    assert [(s.speaker_label, s.text) for s in transcript.segments] == [
        ("Speaker 1", "a b"),
        ("Speaker 2", "c"),
        ("Speaker 1", "d"),
    ]


def test_untagged_words_default_to_first_speaker():
    words = make_words([("x", 0, 100, 0.9), ("y", 100, 200, 0.9)])
    segments = group_words_by_speaker(words)
    assert len(segments) == 1
    assert segments[0].speaker_label == "Speaker 1"


def test_paragraph_fallback_is_single_speaker():
    words = [
        vendor_word("First", 0.0, 0.4),
        vendor_word("sentence.", 0.5, 1.0),
        vendor_word("Later", 5.0, 5.5),
        vendor_word("one.", 5.6, 6.0),
    ]
    paragraphs = [{"sentences": [
        {"text": "First sentence.", "start": 0.0, "end": 1.0},
        {"text": "Later one.", "start": 5.0, "end": 6.0},
    ]}]
    transcript = normalize_response(vendor_response(words=words, paragraphs=paragraphs))

    assert [s.text for s in transcript.segments] == ["First sentence.", "Later one."]
    assert {s.speaker_label for s in transcript.segments} == {"Speaker 1"}
    assert len(transcript.segments[1].words) == 2
    assert [s.label for s in transcript.speakers] == ["Speaker 1"]


def test_segment_by_duration_windows_from_chunk_start():
    words = make_words([
        ("a", 0, 400, 0.9), ("b", 500, 900, 0.9), ("c", 1000, 1400, 0.9), ("d", 1600, 1900, 0.9),
    ])
    chunks = segment_by_duration(words, duration_ms=1000)
    assert [c.text for c in chunks] == ["a b", "c d"]
    assert chunks[1].start_ms == 1000


def test_merge_respects_gap_boundary():
    segments = [
        make_segment("Speaker 1", "one", 0, 1000),
        make_segment("Speaker 1", "two", 2000, 3000),
        make_segment("Speaker 1", "three", 4001, 5000),
    ]
    merged = merge_adjacent_segments(segments, max_gap_ms=1000)
    assert [s.text for s in merged] == ["one two", "three"]
    assert merged[0].end_ms == 3000
    assert segments[0].text == "one"


def test_merge_is_idempotent():
    segments = [
        make_segment("Speaker 1", "a", 0, 1000),
        make_segment("Speaker 1", "b", 1200, 2000),
        make_segment("Speaker 2", "c", 2100, 3000),
        make_segment("Speaker 2", "d", 6000, 7000),
        make_segment("Speaker 1", "e", 7100, 8000),
    ]
    once = merge_adjacent_segments(segments)
    assert merge_adjacent_segments(once) == once


def test_order_segments_sorts_drops_blank_and_clamps_overlap():
    segments = [
        make_segment("Speaker 2", "later", 900, 2000),
        make_segment("Speaker 1", "first", 0, 1000),
        make_segment("Speaker 1", "   ", 3000, 4000),
    ]
    ordered = order_segments(segments)
    assert [s.text for s in ordered] == ["first", "later"]
    assert ordered[1].start_ms == 1000
    for previous, current in zip(ordered, ordered[1:]):
        assert current.start_ms >= previous.end_ms


def test_segment_confidence_stays_within_word_bounds():
    words = [
        vendor_word("a", 0.0, 0.4, 0.3, 0),
        vendor_word("b", 0.5, 0.9, 0.9, 0),
        vendor_word("c", 1.0, 1.4, 0.6, 1),
        vendor_word("d", 1.5, 1.9, 0.8, 1),
    ]
    transcript = normalize_response(vendor_response(words=words))
    for segment in transcript.segments:
        confidences = [w.confidence for w in segment.words]
        assert min(confidences) <= segment.confidence <= max(confidences)
        assert segment.start_ms <= segment.end_ms


def test_low_average_confidence_sets_quality_warning():
    words = [vendor_word("mumble", 0.0, 1.0, 0.4, 0)]
    transcript = normalize_response(vendor_response(words=words))
    assert transcript.quality_warning
    assert transcript.average_confidence == pytest.approx(0.4)


@pytest.mark.parametrize("payload", [
    {"metadata": {"duration": 1.0}, "results": {"channels": []}},
    {"metadata": {"duration": 1.0}, "results": {"channels": [{"alternatives": []}]}},
    {"metadata": {"duration": 1.0}},
    {"metadata": {"duration": 1.0}, "results": {"channels": [{"alternatives": [{"words": [
        {"word": "x", "start": 0, "end": 1, "confidence": 1.5},
    ]}]}]}},
])
def test_malformed_responses_raise(payload):
    with pytest.raises(MalformedTranscriptError):
        normalize_response(payload)


def test_speaker_statistics():
    segments = [
        make_segment("Speaker 1", "one two three", 0, 3000),
        make_segment("Speaker 2", "four", 3000, 4000),
        make_segment("Speaker 1", "five", 4000, 5000),
    ]
    stats = calculate_speaker_stats(segments)
    assert stats["Speaker 1"] == {
        "total_time_ms": 4000,
        "word_count": 4,
        "segment_count": 2,
        "average_segment_length_ms": 2000,
    }

    speakers = [Speaker("speaker_0", "Speaker 1", 3000, 10), Speaker("speaker_1", "Speaker 2", 1000, 3)]
    assert get_dominant_speaker(speakers).label == "Speaker 1"
    assert get_dominant_speaker([]) is None
    assert calculate_talk_ratio(speakers) == {"Speaker 1": 0.75, "Speaker 2": 0.25}


def test_response_without_duration_raises():
    words = [vendor_word("hello", 0.0, 0.5, 0.9, 0)]
    response = vendor_response(words=words)
    response["metadata"] = {"request_id": "req-1"}
    with pytest.raises(MalformedTranscriptError):
        normalize_response(response)

    del response["metadata"]
    with pytest.raises(MalformedTranscriptError):
        normalize_response(response)
