import os
import sys
import tempfile
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


class ConfigTests(unittest.TestCase):
    def test_defaults_fill_missing_fields(self) -> None:
        from avashell.cfg_schema import normalize_config

        cfg, errs = normalize_config({})
        self.assertEqual(cfg["NODE_HOST"], "127.0.0.1")
        self.assertEqual(cfg["NODE_PORT"], 9650)
        self.assertEqual(cfg["NODE_PROTOCOL"], "http")
        self.assertFalse(cfg["DEBUG_ENABLED"])
        self.assertTrue(any("NODE_HOST" in e for e in errs))

    def test_invalid_values_fall_back(self) -> None:
        from avashell.cfg_schema import normalize_config

        cfg, errs = normalize_config({"NODE_PORT": "abc", "NODE_PROTOCOL": "ftp", "DEBUG_ENABLED": "on",
                                      "RPC_TIMEOUT_S": 0})
        self.assertEqual(cfg["NODE_PORT"], 9650)
        self.assertEqual(cfg["NODE_PROTOCOL"], "http")
        self.assertTrue(cfg["DEBUG_ENABLED"])
        self.assertEqual(cfg["RPC_TIMEOUT_S"], 30)
        self.assertTrue(any("NODE_PORT" in e for e in errs))
        self.assertTrue(any("NODE_PROTOCOL" in e for e in errs))
        self.assertTrue(any("RPC_TIMEOUT_S" in e for e in errs))

    def test_non_object_config(self) -> None:
        from avashell.cfg_schema import normalize_config

        cfg, errs = normalize_config(["not", "a", "dict"])
        self.assertEqual(cfg["NODE_PORT"], 9650)
        self.assertIn("not a JSON object", errs[0])

    def test_env_overrides(self) -> None:
        from avashell.cfg_schema import apply_env_overrides, normalize_config

        base, _errs = normalize_config({})
        cfg, errs = apply_env_overrides(base, {"AVA_NODE_HOST": "10.1.1.1", "AVA_NODE_PORT": "9651",
                                               "AVA_NODE_PROTOCOL": "HTTPS"})
        self.assertEqual(errs, [])
        self.assertEqual((cfg["NODE_HOST"], cfg["NODE_PORT"], cfg["NODE_PROTOCOL"]), ("10.1.1.1", 9651, "https"))

        cfg, errs = apply_env_overrides(base, {"AVA_NODE_PORT": "nine"})
        self.assertEqual(cfg["NODE_PORT"], 9650)
        self.assertEqual(len(errs), 1)

    def test_load_config_round_trip(self) -> None:
        from avashell.persist import load_config, save_json_file

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "avashell.json")
            cfg, errs, has_file = load_config(path)
            self.assertFalse(has_file)
            self.assertEqual(errs, [])
            cfg["NODE_HOST"] = "node.example"
            save_json_file(path, cfg)
            loaded, errs, has_file = load_config(path)
            self.assertTrue(has_file)
            self.assertEqual(errs, [])
            self.assertEqual(loaded["NODE_HOST"], "node.example")

    def test_corrupt_config_file(self) -> None:
        from avashell.persist import load_config

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "avashell.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write("{broken")
            cfg, errs, has_file = load_config(path)
            self.assertFalse(has_file)
            self.assertEqual(cfg["NODE_PORT"], 9650)


class DebugLogTests(unittest.TestCase):
    def tearDown(self) -> None:
        from avashell.debug import set_debug_enabled, set_debug_log_path, set_debug_max_bytes

        set_debug_enabled(None)
        set_debug_log_path(None)
        set_debug_max_bytes(None)

    def test_events_written_only_when_enabled(self) -> None:
        import json

        from avashell.debug import configure_debug, debug_exception, debug_log

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "debug.jsonl")
            configure_debug({"DEBUG_ENABLED": False, "DEBUG_LOG_PATH": path})
            debug_log("ignored")
            self.assertFalse(os.path.exists(path))

            configure_debug({"DEBUG_ENABLED": True, "DEBUG_LOG_PATH": path, "DEBUG_MAX_BYTES": 0})
            debug_log("dispatch", {"line": "info nodeId"})
            try:
                raise RuntimeError("boom")
            except RuntimeError as exc:
                debug_exception("command_failed", exc, {"method": "nodeId"})
            with open(path, encoding="utf-8") as f:
                recs = [json.loads(ln) for ln in f]
            self.assertEqual([r["event"] for r in recs], ["dispatch", "command_failed"])
            self.assertEqual(recs[1]["data"]["error_type"], "RuntimeError")
            self.assertIn("boom", recs[1]["data"]["traceback"])

    def test_rotation(self) -> None:
        from avashell.debug import configure_debug, debug_log

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "debug.jsonl")
            configure_debug({"DEBUG_ENABLED": True, "DEBUG_LOG_PATH": path, "DEBUG_MAX_BYTES": 10})
            debug_log("first", {"pad": "x" * 50})
            debug_log("second")
            rotated = [n for n in os.listdir(tmp) if n.endswith(".bak")]
            self.assertEqual(len(rotated), 1)


if __name__ == "__main__":
    unittest.main()
