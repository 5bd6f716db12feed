import os
import unittest

# Ensure local imports work when running this file directly.
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
if THIS_DIR not in os.sys.path:
    os.sys.path.insert(0, THIS_DIR)

from managers.command_relay import MEDIA_KEYS, NEXT, PLAY_PAUSE, PREVIOUS, is_supported_platform, send_command


class TestCommandRelay(unittest.TestCase):
    def test_each_command_presses_one_media_key(self):
        pressed = []
        for kind, vk in ((PLAY_PAUSE, 0xB3), (NEXT, 0xB0), (PREVIOUS, 0xB1)):
            self.assertTrue(send_command(kind, press_key=pressed.append))
            self.assertEqual(pressed[-1], vk)
        self.assertEqual(len(pressed), 3)

    def test_unknown_command_is_rejected(self):
        with self.assertRaises(ValueError):
            send_command("Stop", press_key=lambda vk: None)

    def test_unsupported_platform_is_a_logged_no_op(self):
        with self.assertLogs("managers.command_relay", level="WARNING"):
            self.assertFalse(send_command(NEXT, platform="linux"))

    def test_injection_failure_is_reported_not_raised(self):
        def broken(vk):
            raise OSError("no desktop session")

        with self.assertLogs("managers.command_relay", level="ERROR"):
            self.assertFalse(send_command(PLAY_PAUSE, press_key=broken))

    def test_platform_detection(self):
        self.assertTrue(is_supported_platform("win32"))
        self.assertFalse(is_supported_platform("darwin"))
        self.assertEqual(set(MEDIA_KEYS), {"PlayPause", "Next", "Previous"})


if __name__ == "__main__":
    unittest.main(verbosity=2)
