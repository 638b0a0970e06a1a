import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from click.testing import CliRunner

from main import cli


class TestCli:
    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "app-telegram-bot" in result.output

    def test_config_masks_token(self):
        result = CliRunner().invoke(cli, ["config"], env={
            "TELEGRAM_BOT_TOKEN": "123456789:ABCDEFGHIJ",
            "TG_WEB_APP_URL": "https://app.example.com",
            "NODE_ENV": "production",
        })
        assert result.exit_code == 0
        assert "1234...GHIJ" in result.output
        assert "123456789:ABCDEFGHIJ" not in result.output
        assert "https://app.example.com" in result.output
