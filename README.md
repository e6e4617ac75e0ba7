# qqbotplugins

The logic behind a set of group chat bot features, usable without any bot
framework. The modules take plain values (group numbers, user numbers, text,
timestamps, file paths) and return strings, records or files. Sending the
messages is up to the caller.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

`qqbotplugins.midi.render_wav` and `qqbotplugins.midi.text_to_music` run the
external `timidity` program, which has to be on `PATH`. The rest of
`qqbotplugins.midi` works without it.

## Modules

### Reminders

- `qqbotplugins.timer`
  - `Timer` is a dataclass. Its enable flag, month, day, weekday, hour and
    minute are packed into the integer `emdwhm`. Read them with `en()`,
    `month()`, `day()`, `week()`, `hour()` and `minute()`, and change them
    with the matching `set_*` methods. A value of -1 means "every". Weekdays
    run from Sunday (0) to Saturday (6).
  - `timer_info()` gives the normalised description of a timer. `timer_id()`
    takes the first four bytes of its MD5, read little endian.
  - `filled_timer(date_strs, botqq, grp, match_date_only)` builds a timer from
    the groups of a Chinese date phrase: month, day or week, hour, minute,
    optional `用<url>`, alert. Examples of each part are `十二月`, `十五日`,
    `每周`, `周三`, `八` and `三十`. If a part is invalid, the timer comes back
    disabled and its `alert` explains why.
  - `filled_cron_timer(...)` builds a timer driven by a cron expression.
  - `chinese_num_to_int` and `chinese_char_to_int` read Chinese numerals.
- `qqbotplugins.schedule`
  - `next_wake_time(timer, now)` returns when a date-based timer should next
    be checked.
  - `should_fire(timer, now)` tells whether the timer matches `now`.
  - `first_week(date, week)` returns the first day of the month of `date` that
    falls on `week`.
- `qqbotplugins.clock`
  - `Clock(db_path, sender)` keeps timers in a SQLite file and runs each one
    in a background thread. When a timer is due it calls
    `sender(self_id, grp_id, segments)`.
  - `register_timer(timer, save)` starts a timer and, with `save`, stores it.
    `cancel_timer(key)`, `get_timer(key)` and `list_timers(grp_id)` manage the
    timers of a group. `close()` stops them all. A `Clock` can also be used as
    a context manager.
  - Cron expressions take five fields, month and weekday names, the
    `@yearly`/`@monthly`/`@weekly`/`@daily`/`@hourly` descriptors and
    `@every <duration>`.
  - `build_alert_message(timer)` makes the segments that are sent: an @all, the
    alert text and an optional image.

```python
from qqbotplugins.clock import Clock
from qqbotplugins.timer import filled_cron_timer

def send(self_id, grp_id, segments):
    print(grp_id, segments)

with Clock("timers.db", send) as clock:
    t = filled_cron_timer("0 8 * * *", "早上好", "", 0, 123456)
    clock.register_timer(t, True)
    print(clock.list_timers(123456))   # ['0 8 * * *\n']
```

### Group management

`qqbotplugins.manager` provides:

- `ManagerStore(path)`, a SQLite store.
  - `set_welcome` / `welcome` and `set_farewell` / `farewell` hold each
    group's templates.
  - `has_member` / `add_member` record the GitHub users who have joined.
- `welcome_to_cq(template, uid, nickname, gid, groupname)`, which expands
  `{at}`, `{nickname}`, `{avatar}`, `{uid}`, `{gid}` and `{groupname}`.
- `ban_seconds(amount, unit)`, which returns a mute length in seconds. The
  unit is minutes unless it names hours or days, and the result is capped at
  43199 minutes.
- `unescape_forward`, which turns `&#91;` and `&#93;` back into brackets.
- Gist-based join approval. `parse_gist_answer` splits the
  `username/gisthash` answer. `gist_url` builds the raw URL of the file named
  after the MD5 of the group number. `check_new_user(store, qq, gid, ghun,
  gist_hash, fetch=None, now=None)` accepts a timestamp less than 600 seconds
  old, records the member, and returns `(accepted, reason)`.
- `set_flag(data, option, mask)`, which switches a setting bit on or off by a
  Chinese option word (`开启`, `关闭`, …). It returns `None` for any other word.
- `pick_lucky_member(members, rng=None)`, which picks one of the ten most
  recently active members.
- `addition_quiz(rng=None)`, which returns two addends and their sum for the
  join quiz.

### MIDI

`qqbotplugins.midi` provides:

- `make_midi(text, timbre=40)`, which turns note text such as
  `CCGGAAGR FFEEDDCR` into a `mido.MidiFile`. A note is a letter A–G,
  optionally followed by `b`/`#`, an octave, and `<n` for a length of `2**n`
  quarters. `R` is a rest. Unparsable characters raise `ValueError`.
- `write_midi(path, text, timbre)`, which writes the file unless it already
  exists.
- `mid_to_txt(data, track_no)`, which turns a track back into note text.
- `render_wav` / `text_to_music`, which render WAV with `timidity`.
- Helpers for the ear-training game: `octave`, `note_name`, `process_one`,
  `random_target` and `validate_timbre`.

```python
import io
from qqbotplugins.midi import make_midi, mid_to_txt

buf = io.BytesIO()
make_midi("CDE").save(file=buf)
print(mid_to_txt(buf.getvalue(), 0))   # CDE
```

### Small features

- `qqbotplugins.moyu`
  - `Holiday.describe(now)` gives the countdown to a holiday.
  - `parse_holiday(name, raw)` and `format_holiday(...)` read and write the
    `dur_year_month_day` record.
  - `weekend(today)` gives the days left until the weekend.
  - `build_moyu_message(now, holidays)` builds the whole daily reminder.
- `qqbotplugins.nsfw`: `judge(picture)` and `autojudge(picture)` turn the
  classifier scores in a `Picture` into a verdict. `autojudge` returns `None`
  when nothing is worth mentioning.
- `qqbotplugins.github`
  - `search_repo(query)` returns the first matching repository and raises
    `LookupError` when there is none.
  - `format_repo` and `preview_image_url` describe a repository.
  - `net_get` raises `RequestError` on any status other than 200.
  - `notnull` returns a default for empty text.
- `qqbotplugins.nbnhhsh`: `get_value(text)` guesses what a pinyin
  abbreviation stands for, and `parse_guess` reads the response.
- `qqbotplugins.juejuezi`: `juejuezi(verb, noun)` calls the phrase generator.
  `build_payload` and `strip_keyword` prepare the input.
- `qqbotplugins.hyaku`
  - `load_poems(path)` reads the hundred poems from a CSV file whose first row
    is a title. It raises `ValueError` unless the file holds poems 1–100 in
    order.
  - Each `Poem` prints as a labelled block.
  - `image_urls(number)` returns the two image links of a poem.
- `qqbotplugins.imagefinder`
  - `soutu_api(keyword)` searches illustrations and `parse_search_result`
    reads the response, raising `SearchError` when the service reports one.
  - `format_tags` and `clean_description` format the results.
- `qqbotplugins.nativewife`
  - `WifeGallery(base)` keeps one folder of pictures per group, named in
    base 36.
  - `add`, `remove` and `list_wives` manage the pictures.
  - `draw(gid, nickname, day)` gives each member the same picture all day.
  - `clean_wife_name` extracts a name from a command message.
- `qqbotplugins.jandan`
  - `PictureStore(path)` is a SQLite store of picture URLs keyed by their
    CRC-64 (`picture_id`).
  - `add_new_pictures(store, urls)` inserts URLs until it meets one that is
    already stored.

## What the package does not do

- It does not connect to a chat service, listen for messages or match
  commands. The caller decides when to call each function and delivers what
  comes back, including the segments a `Clock` hands to its sender.
- It does not download data files. The poem CSV, the holiday records for
  `parse_holiday` and the pages listing pictures for `add_new_pictures` have
  to be fetched by the caller.
- It does not compose or edit images.