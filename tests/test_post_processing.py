import pytest

from transcript_intel.domain.models import LowConfidenceRange
from transcript_intel.post_processing import (
    PostProcessorOptions, TranscriptPostProcessor, clean_sentence_boundaries,
    find_low_confidence_ranges, remove_filler_words, resolve_speaker,
)

from conftest import make_segment, make_words


@pytest.mark.parametrize("text, expected", [
    ("I um think that um we should do it", "I think that we should do it"),
    ("So uh that is the plan", "that is the plan"),
    ("Basically basically the issue is", "the issue is"),
    ("The the problem is clear", "The problem is clear"),
    ("I - I think so", "I think so"),
    ("We should, you know, ship it", "We should, ship it"),
    ("So um uh basically you know", ""),
])
def test_remove_filler_words(text, expected):
    assert remove_filler_words(text) == expected


@pytest.mark.parametrize("text", [
    "So um like I was saying, the the plan is, you know, kind of done",
    "Uh, well, I mean we we could - we could try",
    "Actually basically honestly it works",
    "",
])
def test_remove_filler_words_is_idempotent(text):
    once = remove_filler_words(text)
    assert remove_filler_words(once) == once


def test_clean_sentence_boundaries():
    assert clean_sentence_boundaries("hello world. how are you") == "Hello world. How are you."
    assert clean_sentence_boundaries("  is it done?  ") == "Is it done?"
    assert clean_sentence_boundaries("wow! great") == "Wow! Great."
    assert clean_sentence_boundaries("   ") == ""


def test_low_confidence_ranges_group_consecutive_words():
    words = make_words([
        ("Hello", 0, 100, 0.9),
        ("big", 100, 200, 0.5),
        ("bad", 200, 300, 0.4),
        ("world", 300, 400, 0.95),
    ])
    assert find_low_confidence_ranges(words, 0.7) == [LowConfidenceRange(6, 13)]


def test_low_confidence_ranges_separate_runs():
    words = make_words([("a", 0, 1, 0.1), ("bb", 1, 2, 0.9), ("cc", 2, 3, 0.2)])
    assert find_low_confidence_ranges(words, 0.5) == [LowConfidenceRange(0, 1), LowConfidenceRange(5, 7)]
    assert find_low_confidence_ranges([], 0.5) == []


def test_resolve_speaker():
    assert resolve_speaker("Speaker 1", {"Speaker 1": "Alice"}) == "Alice"
    assert resolve_speaker("Speaker 2", {"Speaker 1": "Alice"}) == "Speaker 2"
    assert resolve_speaker("speaker 1", {"Speaker 1": "Alice"}) == "speaker 1"


def test_process_segment_applies_all_passes():
    words = make_words([("um", 0, 100, 0.3), ("hello", 100, 400, 0.95), ("team", 400, 600, 0.95)])
    segment = make_segment("Speaker 1", "um hello team", 0, 600, words=words)
    processor = TranscriptPostProcessor(PostProcessorOptions(speaker_aliases={"Speaker 1": "Alice"}))

    processed = processor.process_segment(segment)

    assert processed.text == "um hello team"
    assert processed.cleaned_text == "Hello team."
    assert processed.display_speaker == "Alice"
    assert processed.low_confidence_ranges == [LowConfidenceRange(0, 2)]
    assert (processed.start_ms, processed.end_ms) == (0, 600)


def test_disabled_passes_leave_text_alone():
    processor = TranscriptPostProcessor(PostProcessorOptions(
        remove_fillers=False, clean_sentence_boundaries=False, highlight_low_confidence=False,
    ))
    words = make_words([("um", 0, 100, 0.1)])
    processed = processor.process_segment(make_segment("Speaker 1", "um ok", words=words))
    assert processed.cleaned_text == "um ok"
    assert processed.low_confidence_ranges == []


def test_segment_that_is_all_filler_becomes_empty():
    processed = TranscriptPostProcessor().process_segment(make_segment("Speaker 1", "uh um"))
    assert processed.cleaned_text == ""


def test_update_options_and_full_text():
    processor = TranscriptPostProcessor()
    processor.update_options(speaker_aliases={"Speaker 1": "Alice"})
    assert processor.options.remove_fillers

    processed = processor.process_transcript([
        make_segment("Speaker 1", "hello", 0, 1000),
        make_segment("Speaker 2", "hi there", 1000, 2000),
    ])
    assert processor.get_full_text(processed) == "Alice: Hello.\n\nSpeaker 2: Hi there."
