"""
Unit tests for topics module - topic name generation and management.
"""
import doctest

from cloudscan.services.shared import topics
from cloudscan.services.shared.topics import (
    slugify_topic_prefix,
    generate_unique_topic_prefix,
    TopicRegistry
)


class TestSlugifyTopicPrefix:
    """Tests for slugify_topic_prefix function"""

    def test_basic_alphanumeric(self):
        assert slugify_topic_prefix("front_scan") == "front_scan"

    def test_lowercases_and_replaces_spaces(self):
        assert slugify_topic_prefix("Front Kinect #1") == "front_kinect_1"

    def test_multiple_underscores_collapsed(self):
        assert slugify_topic_prefix("test___scan___name") == "test_scan_name"

    def test_leading_trailing_stripped(self):
        assert slugify_topic_prefix("__scan_name__") == "scan_name"
        assert slugify_topic_prefix("--scan-name--") == "scan-name"

    def test_empty_string_returns_default(self):
        """Test that empty or unusable names fall back to 'scan'"""
        assert slugify_topic_prefix("") == "scan"
        assert slugify_topic_prefix("   ") == "scan"
        assert slugify_topic_prefix("@#$%^&*()") == "scan"


class TestGenerateUniqueTopicPrefix:
    """Tests for generate_unique_topic_prefix function"""

    def test_no_collision(self):
        assert generate_unique_topic_prefix("Scan", "abc123", {"rear"}) == "scan"

    def test_collision_appends_node_id(self):
        assert generate_unique_topic_prefix("Scan", "abc123", {"scan"}) == "scan_abc123"

    def test_node_id_suffix_truncated(self):
        result = generate_unique_topic_prefix("scan", "abcdefghijkl", {"scan"})
        assert result == "scan_abcdefgh"

    def test_second_collision_appends_counter(self):
        existing = {"scan", "scan_abc123", "scan_abc123_2"}
        assert generate_unique_topic_prefix("Scan", "abc123", existing) == "scan_abc123_3"

    def test_empty_node_id(self):
        assert generate_unique_topic_prefix("scan", "", {"scan"}) == "scan_1"


class TestTopicRegistry:
    """Tests for TopicRegistry class"""

    def test_register_returns_unique_names(self):
        registry = TopicRegistry()
        first = registry.register("Cloud To Scan", "node_a")
        second = registry.register("Cloud To Scan", "node_b")

        assert first == "cloud_to_scan"
        assert second == "cloud_to_scan_node_b"
        assert registry.get_all() == {first, second}

    def test_unregister_frees_name(self):
        registry = TopicRegistry()
        name = registry.register("front", "node_a")
        registry.unregister(name)

        assert registry.register("front", "node_b") == "front"

    def test_clear(self):
        registry = TopicRegistry()
        registry.register("front", "a")
        registry.clear()
        assert registry.get_all() == set()

    def test_get_all_returns_copy(self):
        registry = TopicRegistry()
        registry.register("front", "a")
        registry.get_all().add("other")
        assert registry.get_all() == {"front"}


class TestDocumentedExamples:
    def test_docstring_examples_hold(self):
        """Test the Examples sections in the topics module stay accurate"""
        result = doctest.testmod(topics)
        assert result.attempted >= 5
        assert result.failed == 0
