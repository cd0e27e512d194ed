from repurposer.services.content_types import ContentType, EmailMetadata
from repurposer.services.response_parser import (
    parse_delimited,
    parse_email,
    parse_email_sequence,
    parse_numbered_lines,
    parse_response,
    parse_single,
)


class TestDelimited:
    def test_two_items_in_order(self):
        drafts = parse_delimited("---ITEM 1---\nA\n---ITEM 2---\nB", "ITEM")
        assert [d.text for d in drafts] == ["A", "B"]

    def test_empty_segments_dropped(self):
        drafts = parse_delimited("intro\n---POST 1---\n\n---POST 2---\nSecond post\n---POST 3---\n   ", "POST")
        assert [d.text for d in drafts] == ["intro", "Second post"]

    def test_no_delimiter_is_one_item(self):
        drafts = parse_delimited("  just one post  ", "POST")
        assert [d.text for d in drafts] == ["just one post"]

    def test_empty_response_still_yields_one_draft(self):
        assert [d.text for d in parse_delimited("", "POST")] == [""]
        assert [d.text for d in parse_delimited("---POST 1---\n---POST 2---", "POST")] == ["---POST 1---\n---POST 2---"]

    def test_other_marker_not_split(self):
        drafts = parse_delimited("---EMAIL 1---\nA", "POST")
        assert len(drafts) == 1

    def test_linkedin_uses_post_marker(self):
        drafts = parse_response(ContentType.LINKEDIN_POST, "---POST 1---\nHook one\n---POST 2---\nHook two")
        assert [d.text for d in drafts] == ["Hook one", "Hook two"]
        assert all(d.metadata is None for d in drafts)


class TestEmail:
    def test_subject_and_body(self):
        draft = parse_email("Subject: Hello\nBody line 1\nBody line 2")
        assert draft.metadata == EmailMetadata(subject="Hello")
        assert draft.metadata_dict() == {"subject": "Hello"}
        assert draft.text == "Body line 1\nBody line 2"

    def test_subject_prefix_case_insensitive(self):
        draft = parse_email("SUBJECT:   Big news\n\nHi there")
        assert draft.metadata.subject == "Big news"
        assert draft.text == "Hi there"

    def test_missing_subject(self):
        draft = parse_email("No subject here\nBody")
        assert draft.metadata.subject == ""
        assert draft.text == "No subject here\nBody"

    def test_sequence(self):
        response = (
            "Here is your sequence.\n"
            "---EMAIL 1---\nSubject: Welcome\nThanks for joining.\n"
            "---EMAIL 2---\nsubject: Next step\nLine A\nLine B\n"
        )
        drafts = parse_email_sequence(response)
        assert [d.metadata.subject for d in drafts] == ["", "Welcome", "Next step"]
        assert drafts[2].text == "Line A\nLine B"

    def test_sequence_empty_response(self):
        drafts = parse_response(ContentType.EMAIL_SEQUENCE, "")
        assert len(drafts) == 1
        assert drafts[0].text == ""
        assert drafts[0].metadata == EmailMetadata(subject="")


class TestNumberedLines:
    def test_thread(self):
        response = "Here's the thread:\n1/ Hook tweet\n2. Second tweet\n\n3/Third\nNot numbered"
        drafts = parse_numbered_lines(response)
        assert [d.text for d in drafts] == ["Hook tweet", "Second tweet", "Third"]

    def test_indented_numbers_count(self):
        drafts = parse_numbered_lines("   10/ ten")
        assert [d.text for d in drafts] == ["ten"]

    def test_no_numbered_lines_falls_back_to_whole_response(self):
        response = "  A thread without numbers\nsecond line  "
        drafts = parse_response(ContentType.TWITTER_THREAD, response)
        assert len(drafts) == 1
        assert drafts[0].text == "A thread without numbers\nsecond line"

    def test_number_without_separator_not_matched(self):
        drafts = parse_numbered_lines("2024 was a big year")
        assert [d.text for d in drafts] == ["2024 was a big year"]


class TestSingleton:
    def test_blog_is_one_item(self):
        response = "\nTitle\n\n---POST 1---\n1/ not a tweet\n"
        drafts = parse_response(ContentType.BLOG_POST, response)
        assert [d.text for d in drafts] == ["Title\n\n---POST 1---\n1/ not a tweet"]

    def test_summary_is_one_item(self):
        assert [d.text for d in parse_response(ContentType.EXECUTIVE_SUMMARY, " Summary ")] == ["Summary"]

    def test_empty(self):
        assert [d.text for d in parse_single("")] == [""]
