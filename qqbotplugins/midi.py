"""Turning note text into MIDI, MIDI back into note text, and rendering to WAV."""

from __future__ import annotations

import io
import math
import random
import re
import subprocess
from pathlib import Path
from typing import Optional, Union

import mido

TICKS_PER_QUARTER = 960
DEFAULT_TIMBRE = 40
TEMPO_BPM = 72
VELOCITY = 120

NOTE_MAP = {
    "C": 60,
    "Db": 61,
    "D": 62,
    "Eb": 63,
    "E": 64,
    "F": 65,
    "Gb": 66,
    "G": 67,
    "Ab": 68,
    "A": 69,
    "Bb": 70,
    "B": 71,
}
_NAME_BY_CLASS = {value % 12: key for key, value in NOTE_MAP.items()}

_LENGTH_RE = re.compile(r"-?\d+")
_INT64_MAX = (1 << 63) - 1
_INT64_MIN = -(1 << 63)

PathLike = Union[str, Path]


def octave(base: int, oct: int) -> int:
    """Note number of pitch class ``base`` in octave ``oct`` (capped at 10).

    Arithmetic wraps like an unsigned byte; results above 127 drop an octave.
    """
    base &= 0xFF
    oct &= 0xFF
    if oct > 10:
        oct = 10
    if oct == 0:
        return base
    res = (base + 12 * oct) & 0xFF
    if res > 127:
        res = (res - 12) & 0xFF
    return res


def note_name(n: int) -> str:
    """Name of the pitch class of note ``n``, with flats for black keys."""
    return _NAME_BY_CLASS[(n & 0xFF) % 12]


def process_one(note: str) -> int:
    """Note number of a single answer such as ``C#6``; octave 5 by default."""
    base = 0
    level = 0
    for ch in note.replace(" ", ""):
        if "A" <= ch <= "G":
            base = NOTE_MAP[ch] % 12
        elif ch == "b":
            base = (base - 1) & 0xFF
        elif ch == "#":
            base = (base + 1) & 0xFF
        elif "0" <= ch <= "9":
            level = (level * 10 + ord(ch) - ord("0")) & 0xFF
    if level == 0:
        level = 5
    return octave(base, level)


def _atoi(text: str) -> int:
    if not _LENGTH_RE.fullmatch(text):
        return 0
    return max(_INT64_MIN, min(_INT64_MAX, int(text)))


def _duration(length: int) -> int:
    """Ticks of a note of length ``2**length`` quarters, in 32-bit arithmetic."""
    if length >= 0:
        factor = (1 << length) if length < 32 else 0
        return (TICKS_PER_QUARTER * factor) & 0xFFFFFFFF
    shift = -length
    if shift >= 32:
        raise ValueError(f"时值过短: <{length}")
    return TICKS_PER_QUARTER // (1 << shift)


def _is_letter(c: int) -> bool:
    return ord("A") <= c <= ord("G")


def make_midi(text: str, timbre: int = DEFAULT_TIMBRE) -> mido.MidiFile:
    """Build a one-track MIDI file from note text such as ``CCGGAAGR``.

    Each note is a letter A-G, optional ``b``/``#``, an optional octave and an
    optional ``<n`` giving a length of ``2**n`` quarters. ``R`` is a rest.
    Raises ValueError on a character that cannot be parsed.
    """
    track = mido.MidiTrack()
    track.append(mido.MetaMessage("time_signature", numerator=4, denominator=4, time=0))
    track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(TEMPO_BPM), time=0))
    track.append(mido.MetaMessage("instrument_name", name="Violin", time=0))
    track.append(mido.Message("program_change", channel=0, program=timbre & 0x7F, time=0))

    k = text.replace(" ", "").encode("utf-8")
    n = len(k)
    i = 0
    delay = 0
    while i < n:
        base = 0
        level = 0
        rest = False
        length_chars = bytearray()
        while True:
            c = k[i]
            if c == ord("R"):
                rest = True
                i += 1
            elif _is_letter(c):
                base = NOTE_MAP[chr(c)] % 12
                i += 1
            elif c == ord("b"):
                base = (base - 1) & 0xFF
                i += 1
            elif c == ord("#"):
                base = (base + 1) & 0xFF
                i += 1
            elif ord("0") <= c <= ord("9"):
                level = (level * 10 + c - ord("0")) & 0xFF
                i += 1
            elif c == ord("<"):
                i += 1
                while i < n and (k[i] == ord("-") or ord("0") <= k[i] <= ord("9")):
                    length_chars.append(k[i])
                    i += 1
            else:
                raise ValueError(f"无法解析第{i}个位置的{chr(c)}字符")
            if i >= n or _is_letter(k[i]) or k[i] == ord("R"):
                break
        length = _atoi(length_chars.decode("ascii"))
        if rest:
            delay = _duration(length)
            continue
        if level == 0:
            level = 5
        note = octave(base, level) & 0x7F
        track.append(mido.Message("note_on", channel=0, note=note, velocity=VELOCITY, time=delay))
        track.append(
            mido.Message("note_off", channel=0, note=note, velocity=0, time=_duration(length))
        )
        delay = 0
    track.append(mido.MetaMessage("end_of_track", time=0))

    midi = mido.MidiFile(type=1, ticks_per_beat=TICKS_PER_QUARTER)
    midi.tracks.append(track)
    return midi


def write_midi(path: PathLike, text: str, timbre: int = DEFAULT_TIMBRE) -> None:
    """Write the MIDI of ``text`` to ``path`` unless the file already exists."""
    target = Path(path)
    if target.exists():
        return
    midi = make_midi(text, timbre)
    midi.save(str(target))


def _round_half_away(x: float) -> int:
    if x >= 0:
        return int(math.floor(x + 0.5))
    return -int(math.floor(-x + 0.5))


def _pow2(length: float) -> Optional[int]:
    if not length > 0:
        return None
    return _round_half_away(math.log2(length))


def mid_to_txt(data: bytes, track_no: int) -> str:
    """Note text of one track of a MIDI file; empty when it cannot be read."""
    try:
        midi = mido.MidiFile(file=io.BytesIO(data))
    except (OSError, EOFError, ValueError, KeyError, IndexError, TypeError):
        return ""
    if not 0 <= track_no < len(midi.tracks):
        return ""
    metric = float(TICKS_PER_QUARTER)
    parts = []
    abs_start = 0.0
    abs_end = 0.0
    start_note = 0
    end_note = 0
    ticks = 0
    for msg in midi.tracks[track_no]:
        ticks += msg.time
        if msg.is_meta:
            continue
        sounding = msg.type == "note_on" and msg.velocity > 0
        if sounding:
            abs_start = float(ticks)
            start_note = msg.note
        if msg.type == "note_off" or (msg.type == "note_on" and msg.velocity == 0):
            abs_end = float(ticks)
            end_note = msg.note
            if start_note == end_note:
                level = msg.note // 12
                parts.append(note_name(msg.note))
                if level != 5:
                    parts.append(str(level))
                pw = _pow2((abs_end - abs_start) / metric)
                if pw is not None and pw >= -4 and pw != 0:
                    parts.append(f"<{pw}")
                start_note = 0
                end_note = 0
        if sounding and abs_start > abs_end:
            pw = _pow2((abs_start - abs_end) / metric)
            if pw == 0:
                parts.append("R")
            elif pw is not None and pw >= -4:
                parts.append(f"R<{pw}")
    return "".join(parts)


def render_wav(midi_path: PathLike, wav_path: PathLike) -> None:
    """Render a MIDI file to WAV with timidity; raises if it fails."""
    subprocess.run(
        ["timidity", str(midi_path), "-Ow", "-o", str(wav_path)],
        check=True,
    )


def text_to_music(text: str, midi_path: PathLike, timbre: int = DEFAULT_TIMBRE) -> str:
    """Write the MIDI of ``text`` and render it; returns the WAV path."""
    write_midi(midi_path, text, timbre)
    wav_path = str(midi_path).replace(".mid", ".wav")
    render_wav(midi_path, wav_path)
    return wav_path


def random_target(rng: Optional[random.Random] = None) -> tuple[int, str]:
    """A random note for ear training and its written answer, e.g. ``(61, "Db5")``."""
    rng = rng or random.Random()
    target = 55 + rng.randrange(34)
    return target, note_name(target) + str(target // 12)


def validate_timbre(timbre: int) -> int:
    """Check that a General MIDI program number lies in 0..127."""
    value = int(timbre)
    if value < 0 or value > 127:
        raise ValueError("音色应该在0~127之间")
    return value