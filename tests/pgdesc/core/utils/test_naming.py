import unittest

from pgdesc.core.utils.naming import snake_case, pascal_case


class SnakeCaseTests (unittest.TestCase):

    def test_simple_words(self):
        """CamelCase words are separated by underscores."""
        self.assertEqual(snake_case("BlogPost"), "blog_post")
        self.assertEqual(snake_case("createdAt"), "created_at")

    def test_acronym_runs(self):
        """Runs of capitals stay together."""
        self.assertEqual(snake_case("ProviderAPIKey"), "provider_api_key")
        self.assertEqual(snake_case("UserID"), "user_id")
        self.assertEqual(snake_case("ID"), "id")
        self.assertEqual(snake_case("IDs"), "ids")
        self.assertEqual(snake_case("UserIDs"), "user_ids")
        self.assertEqual(snake_case("ABc"), "a_bc")

    def test_already_snake(self):
        """Lower-case names are left as they are."""
        self.assertEqual(snake_case("name"), "name")
        self.assertEqual(snake_case("source_id"), "source_id")


class PascalCaseTests (unittest.TestCase):

    def test_simple_words(self):
        """Underscore-separated words are capitalized and joined."""
        self.assertEqual(pascal_case("blog_posts"), "BlogPosts")
        self.assertEqual(pascal_case("customers"), "Customers")

    def test_acronyms(self):
        """The id, api and url words are upper-cased."""
        self.assertEqual(pascal_case("user_id"), "UserID")
        self.assertEqual(pascal_case("id"), "ID")
