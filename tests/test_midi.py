import io
import random
from unittest import mock

import mido
import pytest

from qqbotplugins import midi


def _to_bytes(midi_file: mido.MidiFile) -> bytes:
    buf = io.BytesIO()
    midi_file.save(file=buf)
    return buf.getvalue()


def _notes_on(midi_file):
    return [m for m in midi_file.tracks[0] if m.type == "note_on"]


def test_octave_default_level():
    assert midi.octave(0, 5) == 60


def test_octave_zero_returns_base():
    assert midi.octave(7, 0) == 7


def test_octave_caps_high_octaves():
    for base in range(12):
        assert midi.octave(base, 20) == midi.octave(base, 10)
        assert midi.octave(base, 10) <= 127


def test_note_name_known_values():
    assert midi.note_name(60) == "C"
    assert midi.note_name(61) == "Db"
    assert midi.note_name(72) == "C"
    assert midi.note_name(70) == "Bb"


@pytest.mark.parametrize("name,value", sorted(midi.NOTE_MAP.items()))
def test_process_one_matches_note_map(name, value):
    assert midi.process_one(name) == value


def test_process_one_sharp_equals_flat():
    assert midi.process_one("C#6") == midi.process_one("Db6")
    assert midi.process_one("C 5") == midi.process_one("C")


def test_random_target_answer_is_consistent():
    rng = random.Random(7)
    for _ in range(50):
        target, answer = midi.random_target(rng)
        assert 55 <= target < 89
        assert answer == midi.note_name(target) + str(target // 12)
        assert midi.process_one(answer) == target


def test_validate_timbre():
    assert midi.validate_timbre(40) == 40
    with pytest.raises(ValueError):
        midi.validate_timbre(-1)
    with pytest.raises(ValueError):
        midi.validate_timbre(128)


def test_make_midi_structure():
    m = midi.make_midi("CDE", 40)
    assert m.ticks_per_beat == 960
    assert [n.note for n in _notes_on(m)] == [60, 62, 64]
    programs = [x.program for x in m.tracks[0] if x.type == "program_change"]
    assert programs == [40]


def test_make_midi_rest_delays_next_note():
    m = midi.make_midi("RC")
    assert _notes_on(m)[0].time == 960


def test_make_midi_rejects_unknown_character():
    with pytest.raises(ValueError, match="无法解析第1个位置"):
        midi.make_midi("CX")


@pytest.mark.parametrize("text", ["CDE", "C<1D", "C6E4", "CRD", "C<-1D<-2", "GGFFEEDR"])
def test_round_trip(text):
    data = _to_bytes(midi.make_midi(text))
    expected = text[:-1] if text.endswith("R") else text
    assert midi.mid_to_txt(data, 0) == expected


def test_round_trip_sharp_becomes_flat():
    data = _to_bytes(midi.make_midi("C#"))
    assert midi.mid_to_txt(data, 0) == "Db"


def test_mid_to_txt_invalid_data():
    assert midi.mid_to_txt(b"not a midi file", 0) == ""


def test_mid_to_txt_missing_track():
    data = _to_bytes(midi.make_midi("C"))
    assert midi.mid_to_txt(data, 3) == ""


def test_write_midi_does_not_overwrite(tmp_path):
    path = tmp_path / "song.mid"
    midi.write_midi(path, "CDE")
    first = path.read_bytes()
    midi.write_midi(path, "GGG")
    assert path.read_bytes() == first
    assert midi.mid_to_txt(first, 0) == "CDE"


def test_text_to_music_runs_timidity(tmp_path):
    path = tmp_path / "song.mid"
    with mock.patch("qqbotplugins.midi.subprocess.run") as run:
        wav = midi.text_to_music("CDE", path, 40)
    assert wav == str(tmp_path / "song.wav")
    run.assert_called_once_with(
        ["timidity", str(path), "-Ow", "-o", wav], check=True
    )
    assert path.exists()