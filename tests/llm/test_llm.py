import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch


class LlmConfigTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        import shutil

        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_default_config_values(self):
        from trayce.llm.config import LlmConfig

        config = LlmConfig()
        self.assertEqual(config.anthropic_api_key, "")
        self.assertEqual(config.model, "claude-haiku-4-5-20251001")
        self.assertEqual(config.max_tokens, 4096)
        self.assertEqual(config.temperature, 0.7)
        self.assertEqual(config.language, "English")
        self.assertEqual(config.max_clipboard_items, 50)
        self.assertFalse(config.has_api_key)

    def test_config_to_dict_and_from_dict(self):
        from trayce.llm.config import LlmConfig

        original = LlmConfig(
            anthropic_api_key="test-key",
            model="claude-sonnet-4-5-20250929",
            language="Japanese",
            max_clipboard_items=5,
        )

        restored = LlmConfig.from_dict(original.to_dict())

        self.assertEqual(restored, original)
        self.assertTrue(restored.has_api_key)

    def test_get_llm_config_reads_env_vars(self):
        from trayce.llm.config import get_llm_config

        with patch.dict(os.environ, {
            "TRAYCE_HOME": self.tmpdir,
            "ANTHROPIC_API_KEY": "env-key",
            "TRAYCE_LANGUAGE": "German",
            "TRAYCE_MAX_CLIPBOARD_ITEMS": "3",
        }):
            config = get_llm_config()

        self.assertEqual(config.anthropic_api_key, "env-key")
        self.assertEqual(config.language, "German")
        self.assertEqual(config.max_clipboard_items, 3)

    def test_bad_integer_env_var_uses_default(self):
        from trayce.llm.config import get_llm_config

        with patch.dict(os.environ, {"TRAYCE_HOME": self.tmpdir, "TRAYCE_MAX_CLIPBOARD_ITEMS": "lots"}):
            config = get_llm_config()

        self.assertEqual(config.max_clipboard_items, 50)

    def test_saved_config_takes_precedence_over_env(self):
        from trayce.llm.config import LlmConfig, get_llm_config, save_llm_config

        with patch.dict(os.environ, {"TRAYCE_HOME": self.tmpdir, "ANTHROPIC_API_KEY": "env-key"}):
            save_llm_config(LlmConfig(anthropic_api_key="file-key", language="French"))
            config = get_llm_config()

        self.assertTrue((Path(self.tmpdir) / "llm_config.json").exists())
        self.assertEqual(config.anthropic_api_key, "file-key")
        self.assertEqual(config.language, "French")

    def test_corrupt_config_file_falls_back_to_env(self):
        from trayce.llm.config import get_llm_config

        (Path(self.tmpdir) / "llm_config.json").write_text("{not json", encoding="utf-8")
        with patch.dict(os.environ, {"TRAYCE_HOME": self.tmpdir, "ANTHROPIC_API_KEY": "env-key"}):
            config = get_llm_config()

        self.assertEqual(config.anthropic_api_key, "env-key")

    def test_null_fields_fall_back_to_defaults(self):
        from trayce.llm.config import DEFAULT_LANGUAGE, LlmConfig
        from trayce.llm.models import DEFAULT_MODEL

        config = LlmConfig.from_dict({"anthropic_api_key": None, "model": None, "language": None, "temperature": None})

        self.assertEqual(config.anthropic_api_key, "")
        self.assertFalse(config.has_api_key)
        self.assertEqual(config.model, DEFAULT_MODEL)
        self.assertEqual(config.language, DEFAULT_LANGUAGE)
        self.assertEqual(config.temperature, 0.7)

    def test_saved_null_key_loads_without_key(self):
        from trayce.llm.config import get_llm_config

        (Path(self.tmpdir) / "llm_config.json").write_text('{"anthropic_api_key": null}', encoding="utf-8")
        with patch.dict(os.environ, {"TRAYCE_HOME": self.tmpdir}):
            config = get_llm_config()

        self.assertFalse(config.has_api_key)


class LlmModelsTests(unittest.TestCase):
    def test_model_catalog_has_required_categories(self):
        from trayce.llm.models import MODEL_CATALOG

        self.assertIn("balanced", MODEL_CATALOG)
        self.assertIn("fast", MODEL_CATALOG)

    def test_get_all_models(self):
        from trayce.llm.models import get_all_models

        for model in get_all_models():
            self.assertIn("category", model)
            self.assertIn("id", model)
            self.assertEqual(model["provider"], "anthropic")

    def test_default_model_is_in_catalog(self):
        from trayce.llm.models import DEFAULT_MODEL, get_model_by_id

        model = get_model_by_id(DEFAULT_MODEL)
        self.assertIsNotNone(model)
        self.assertEqual(model["category"], "fast")
        self.assertIsNone(get_model_by_id("gpt-unknown"))


if __name__ == "__main__":
    unittest.main()
