import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from wifi_chooser.core import Config
from wifi_chooser.errors import DerivationError
from wifi_chooser.passphrase import derive_credential, extract_psk

PSK = "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"


def _write_script(directory: Path, name: str, body: str) -> Path:
    path = directory / name
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    os.chmod(path, 0o755)
    return path


class TestExtractPsk(unittest.TestCase):
    def test_extracts_hex_key(self) -> None:
        self.assertEqual(extract_psk(f"network={{\n\tpsk={PSK}\n}}"), PSK)

    def test_commented_plaintext_is_not_the_key(self) -> None:
        output = f'network={{\n\tssid="Home"\n\t#psk="hunter22"\n\tpsk={PSK}\n}}\n'

        self.assertEqual(extract_psk(output), PSK)

    def test_missing_key_raises(self) -> None:
        with self.assertRaises(DerivationError):
            extract_psk('network={\n\tssid="Home"\n\t#psk="hunter22"\n}\n')
        with self.assertRaises(DerivationError):
            extract_psk("Passphrase must be 8..63 characters\n")
        with self.assertRaises(DerivationError):
            extract_psk("")


class TestDeriveCredential(unittest.TestCase):
    def setUp(self) -> None:
        self._temp = TemporaryDirectory()
        self.temp_dir = Path(self._temp.name)

    def tearDown(self) -> None:
        self._temp.cleanup()

    def _config(self, tool: Path) -> Config:
        return Config(
            library=self.temp_dir / "lib.toml",
            wpa_conf=self.temp_dir / "wpa.conf",
            wpa_passphrase=tool,
        )

    def test_builds_credential_from_tool_output(self) -> None:
        tool = _write_script(
            self.temp_dir,
            "wpa_passphrase",
            f"printf 'network={{\\n\\tssid=\"%s\"\\n\\t#psk=\"%s\"\\n\\tpsk={PSK}\\n}}\\n' \"$1\" \"$2\"\n",
        )

        entry = derive_credential(self._config(tool), "AA:BB:CC:DD:EE:FF", "Home Net", "hunter22")

        self.assertEqual(entry.mac, "aa:bb:cc:dd:ee:ff")
        self.assertEqual(entry.essid, "Home Net")
        self.assertEqual(entry.pwd, "hunter22")
        self.assertEqual(entry.psk, PSK)

    def test_missing_tool_raises(self) -> None:
        with self.assertRaises(DerivationError):
            derive_credential(self._config(self.temp_dir / "absent"), "aa:bb:cc:dd:ee:ff", "Home", "hunter22")

    def test_rejected_password_raises(self) -> None:
        tool = _write_script(self.temp_dir, "wpa_passphrase", "echo 'Passphrase must be 8..63 characters'\nexit 1\n")

        with self.assertRaises(DerivationError) as ctx:
            derive_credential(self._config(tool), "aa:bb:cc:dd:ee:ff", "Home", "short")
        self.assertIn("8..63", str(ctx.exception))
        self.assertNotIn("short", str(ctx.exception))

    def test_undecodable_output_raises(self) -> None:
        tool = _write_script(self.temp_dir, "wpa_passphrase", "printf '\\377\\376\\n'\n")

        with self.assertRaises(DerivationError):
            derive_credential(self._config(tool), "aa:bb:cc:dd:ee:ff", "Home", "hunter22")


if __name__ == "__main__":
    unittest.main()
