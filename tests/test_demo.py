"""
Smoke test for the demo script.
"""
import logging
import logging_config
from demo import main


def test_demo_runs(capsys):
    """Test the demo runs end to end with a small iteration count"""
    try:
        result, comparison = main(iterations=50, seed=12345)
    finally:
        root = logging.getLogger()
        for handler in logging_config._installed_handlers:
            root.removeHandler(handler)
            handler.close()
        logging_config._installed_handlers.clear()

    output = capsys.readouterr().out
    assert "Demo completed successfully" in output
    assert result.iterations == 50
    assert result.metadata.seed == 12345
    assert len(comparison.scenarios) == 6
