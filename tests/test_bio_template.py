import unittest

from quaverbio.bio_template import (
    KEY_RESOLVERS,
    UnknownKeyError,
    bio_length,
    find_placeholders,
    find_unknown_keys,
    render_bio,
    resolve_key,
)
from quaverbio.models import ModeStats, ProfileRecord, Ranks


def _record() -> ProfileRecord:
    return ProfileRecord(
        id=7,
        username="Player1",
        country="US",
        stats_keys4=ModeStats(
            ranks=Ranks(global_rank=42, country_rank=3),
            total_score=123456789,
            ranked_score=98765432,
            overall_accuracy=87.456,
            overall_performance_rating=512.3456,
            play_count=1500,
            fail_count=200,
            max_combo=2048,
        ),
        stats_keys7=ModeStats(
            ranks=Ranks(global_rank=1234, country_rank=56),
            total_score=5555,
            ranked_score=4444,
            overall_accuracy=100.0,
            overall_performance_rating=0.004,
            play_count=10,
            fail_count=0,
            max_combo=321,
        ),
    )


EXPECTED_VALUES = {
    "username": "Player1",
    "country": "US",
    "4k_rank": "42",
    "4k_rank_country": "3",
    "4k_total_score": "123456789",
    "4k_ranked_score": "98765432",
    "4k_accuracy": "87.46",
    "4k_performance_rating": "512.35",
    "4k_play_count": "1500",
    "4k_fail_count": "200",
    "4k_max_combo": "2048",
    "7k_rank": "1234",
    "7k_rank_country": "56",
    "7k_total_score": "5555",
    "7k_ranked_score": "4444",
    "7k_accuracy": "100.00",
    "7k_performance_rating": "0.00",
    "7k_play_count": "10",
    "7k_fail_count": "0",
    "7k_max_combo": "321",
}


class TestResolveKey(unittest.TestCase):
    def test_key_table_is_exactly_the_known_keys(self) -> None:
        self.assertEqual(set(KEY_RESOLVERS), set(EXPECTED_VALUES))
        self.assertEqual(len(KEY_RESOLVERS), 20)

    def test_every_known_key_resolves_to_expected_value(self) -> None:
        record = _record()
        for key, expected in EXPECTED_VALUES.items():
            with self.subTest(key=key):
                self.assertEqual(resolve_key(key, record), expected)

    def test_unknown_keys_resolve_to_empty_string(self) -> None:
        record = _record()
        for key in ("usernme", "4k_ranks", "", "5k_rank", "USERNAME"):
            with self.subTest(key=key):
                self.assertEqual(resolve_key(key, record), "")

    def test_unknown_key_raises_when_strict(self) -> None:
        with self.assertRaises(UnknownKeyError):
            resolve_key("usernme", _record(), strict=True)
        self.assertEqual(resolve_key("username", _record(), strict=True), "Player1")

    def test_two_decimal_formatting(self) -> None:
        self.assertEqual(resolve_key("4k_accuracy", _record()), "87.46")
        self.assertEqual(resolve_key("7k_accuracy", _record()), "100.00")
        self.assertEqual(resolve_key("7k_performance_rating", _record()), "0.00")


class TestRenderBio(unittest.TestCase):
    def test_text_without_placeholders_is_unchanged(self) -> None:
        schema = "Just a plain bio, nothing to see here."
        self.assertEqual(render_bio(schema, _record()), schema)

    def test_all_keys_compose_expected_string(self) -> None:
        keys = list(EXPECTED_VALUES)
        schema = "|".join(f"{{{key}}}" for key in keys)
        expected = "|".join(EXPECTED_VALUES[key] for key in keys)
        self.assertEqual(render_bio(schema, _record()), expected)

    def test_hello_scenario(self) -> None:
        bio = render_bio("Hello, {username}! Your 4K rank is {4k_rank}.", _record())
        self.assertEqual(bio, "Hello, Player1! Your 4K rank is 42.")

    def test_malformed_placeholders_pass_through(self) -> None:
        record = _record()
        self.assertEqual(render_bio("{unclosed", record), "{unclosed")
        self.assertEqual(render_bio("empty {} braces", record), "empty {} braces")
        self.assertEqual(render_bio("{user name}", record), "{user name}")
        self.assertEqual(render_bio("{{username}}", record), "{Player1}")

    def test_unknown_placeholder_renders_empty(self) -> None:
        self.assertEqual(render_bio("[{nope}]", _record()), "[]")

    def test_replacement_is_not_rescanned(self) -> None:
        record = ProfileRecord(
            id=1,
            username="{country}",
            country="US",
            stats_keys4=_record().stats_keys4,
            stats_keys7=_record().stats_keys7,
        )
        self.assertEqual(render_bio("{username}", record), "{country}")

    def test_replacement_backslashes_are_literal(self) -> None:
        record = ProfileRecord(
            id=1,
            username=r"a\1b\g<0>",
            country="US",
            stats_keys4=_record().stats_keys4,
            stats_keys7=_record().stats_keys7,
        )
        self.assertEqual(render_bio("{username}", record), r"a\1b\g<0>")

    def test_unicode_outside_placeholders_is_preserved(self) -> None:
        schema = "🎹 {username} · ランク {4k_rank} 🏆"
        bio = render_bio(schema, _record())
        self.assertEqual(bio, "🎹 Player1 · ランク 42 🏆")
        self.assertEqual(bio_length(bio), 20)
        self.assertGreater(len(bio.encode("utf-8")), bio_length(bio))

    def test_strict_render_raises_on_unknown_key(self) -> None:
        with self.assertRaises(UnknownKeyError):
            render_bio("{username} {typo}", _record(), strict=True)


class TestSchemaInspection(unittest.TestCase):
    def test_find_placeholders_in_order(self) -> None:
        self.assertEqual(
            find_placeholders("{a} {username} {a} {} {open"),
            ["a", "username", "a"],
        )

    def test_find_unknown_keys_unique_in_order(self) -> None:
        self.assertEqual(
            find_unknown_keys("{zeta} {username} {alpha} {zeta} {4k_rank}"),
            ["zeta", "alpha"],
        )
        self.assertEqual(find_unknown_keys("Hello, {username}!"), [])


if __name__ == "__main__":
    unittest.main()
