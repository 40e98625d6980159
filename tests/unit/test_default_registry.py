import unittest
from unittest.mock import MagicMock, patch

from libwebnovel import new
from libwebnovel.backends import BUILTIN_BACKENDS, FreeWebNovel, LibRead, LightNovelWorld, RoyalRoad, default_registry
from libwebnovel.config import config_manager
from libwebnovel.errors import NoMatchingBackendFound


class TestDefaultRegistry(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()

    def test_builtin_registration_order(self):
        self.assertEqual(BUILTIN_BACKENDS, [RoyalRoad, FreeWebNovel, LightNovelWorld, LibRead])

    def test_keys_are_unique(self):
        keys = [backend.key for backend in BUILTIN_BACKENDS]
        self.assertEqual(len(keys), len(set(keys)))

    def test_enabled_by_default(self):
        with patch.dict(config_manager.config, {'enabled_backends': None}):
            registry = default_registry(self.client)
        self.assertEqual(registry.keys(), ['royalroad', 'freewebnovel', 'lightnovelworld'])
        self.assertIs(registry.client, self.client)

    def test_enabled_backends_setting(self):
        with patch.dict(config_manager.config, {'enabled_backends': ['libread', 'royalroad']}):
            registry = default_registry(self.client)
        # registration order is kept whatever the setting order
        self.assertEqual(registry.keys(), ['royalroad', 'libread'])

    def test_enabled_backends_as_string(self):
        # keys are matched whole, never as substrings of the setting
        with patch.dict(config_manager.config, {'enabled_backends': 'libread,freewebnovel'}):
            registry = default_registry(self.client)
        self.assertEqual(registry.keys(), ['freewebnovel', 'libread'])

        with patch.dict(config_manager.config, {'enabled_backends': 'royalroadfreewebnovel'}):
            registry = default_registry(self.client)
        self.assertEqual(registry.keys(), [])

    def test_url_routing(self):
        with patch.dict(config_manager.config, {'enabled_backends': None}):
            registry = default_registry(self.client)
        self.assertIs(registry.backend_for_url("https://www.royalroad.com/fiction/21220/mother-of-learning"), RoyalRoad)
        self.assertIs(registry.backend_for_url("https://freewebnovel.com/the-guide-to-conquering-earthlings.html"), FreeWebNovel)
        self.assertIs(registry.backend_for_url("https://www.lightnovelworld.com/novel/the-beginning-after-the-end-548"), LightNovelWorld)
        self.assertIsNone(registry.backend_for_url("https://libread.com/libread/the-guide-12345"))

    def test_new_without_matching_backend(self):
        with patch.dict(config_manager.config, {'enabled_backends': None}):
            with self.assertRaises(NoMatchingBackendFound):
                new("https://www.example.org/story/1", client=self.client)
        self.client.get_ok.assert_not_called()


if __name__ == '__main__':
    unittest.main()
