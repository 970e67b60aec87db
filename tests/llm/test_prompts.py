import unittest

from trayce.capture.normalize import ContentItem
from trayce.llm.prompts import SYSTEM_PROMPT, build_procedure_prompt, format_time
from trayce.records import ItemContext


def _items():
    return [
        ContentItem(
            content="  npm install  ",
            timestamp="2025-10-25T14:30:00Z",
            type="command",
            tags=["setup"],
            intent="fresh checkout",
            context=ItemContext(app="Terminal", git_branch="main"),
        ),
        ContentItem(
            content="npm test",
            timestamp="2025-10-25T09:05:07Z",
            type="command",
        ),
    ]


class BuildProcedurePromptTests(unittest.TestCase):
    def test_output_is_deterministic(self):
        first = build_procedure_prompt(_items(), "Setup", "Be brief", "Japanese")
        second = build_procedure_prompt(_items(), "Setup", "Be brief", "Japanese")

        self.assertEqual(first, second)

    def test_states_item_count_and_one_fence_per_item(self):
        prompt = build_procedure_prompt(_items(), "Setup")

        self.assertIn("## Clipboard History (2 items)", prompt)
        self.assertEqual(prompt.count("```"), 4)
        self.assertIn("```\nnpm install\n```", prompt)

    def test_items_keep_input_order(self):
        items = _items()
        prompt = build_procedure_prompt(items, "Setup")

        # the second item is earlier in the day but still rendered second
        self.assertLess(prompt.index("### Item 1 (14:30:00) - command"), prompt.index("### Item 2 (09:05:07) - command"))
        self.assertLess(prompt.index("npm install"), prompt.index("npm test"))

        reversed_prompt = build_procedure_prompt(list(reversed(items)), "Setup")
        self.assertLess(reversed_prompt.index("npm test"), reversed_prompt.index("npm install"))

    def test_renders_optional_metadata_lines(self):
        prompt = build_procedure_prompt(_items(), "Setup")

        self.assertIn("**Tags:** #setup", prompt)
        self.assertIn("**Intent:** fresh checkout", prompt)
        self.assertIn("**Context:** App: Terminal | Branch: main", prompt)
        self.assertEqual(prompt.count("**Tags:**"), 1)
        self.assertEqual(prompt.count("**Context:**"), 1)

    def test_title_is_quoted_and_restated(self):
        prompt = build_procedure_prompt(_items(), "Setup")

        self.assertIn('with the title "Setup":', prompt)
        self.assertIn("level 1 heading using the exact title provided: # Setup", prompt)

    def test_english_has_no_reinforcement(self):
        prompt = build_procedure_prompt(_items(), "T", None, "English")

        self.assertTrue(prompt.startswith("Generate the procedure document in English."))
        self.assertNotIn("Japanese", prompt)
        self.assertNotIn("The entire document must be in", prompt)

    def test_english_is_matched_case_insensitively(self):
        prompt = build_procedure_prompt(_items(), "T", None, "ENGLISH")

        self.assertTrue(prompt.startswith("Generate the procedure document in English."))

    def test_other_language_is_stated_at_start_and_end(self):
        prompt = build_procedure_prompt(_items(), "T", None, "Japanese")
        lines = prompt.split("\n")

        self.assertTrue(lines[0].startswith("IMPORTANT: Generate the entire procedure document in Japanese."))
        self.assertEqual(
            lines[-1],
            "IMPORTANT: The entire document must be in Japanese, including all headings, descriptions, and explanations.",
        )

    def test_custom_instructions_section_and_reminder(self):
        prompt = build_procedure_prompt(_items(), "T", "Use bullet points only.")

        self.assertIn("## Custom Instructions\nUse bullet points only.\n", prompt)
        self.assertIn("Remember to follow the custom instructions", prompt)

    def test_blank_custom_instructions_are_ignored(self):
        prompt = build_procedure_prompt(_items(), "T", "   ")

        self.assertNotIn("## Custom Instructions", prompt)
        self.assertNotIn("Remember to follow the custom instructions", prompt)

    def test_system_prompt_demands_exact_title(self):
        self.assertIn("MUST use that exact title as the H1 heading", SYSTEM_PROMPT)


class FormatTimeTests(unittest.TestCase):
    def test_uses_timestamp_wall_clock(self):
        self.assertEqual(format_time("2025-10-25T14:30:00+09:00"), "14:30:00")
        self.assertEqual(format_time("2025-10-25T14:30:00.123Z"), "14:30:00")

    def test_unparseable_timestamp_is_shown_verbatim(self):
        self.assertEqual(format_time("yesterday"), "yesterday")


if __name__ == "__main__":
    unittest.main()
