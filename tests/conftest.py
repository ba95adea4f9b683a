"""
Shared fixtures for the comment filter tests.
"""

import json
from unittest.mock import MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError

OWNER_ID = "UCowner000000000000000000"


def make_http_error(status, reason):
    """Build an HttpError the way googleapiclient raises it for an API error body."""
    resp = httplib2.Response({'status': status})
    content = json.dumps({
        'error': {
            'code': status,
            'message': reason,
            'errors': [{'reason': reason, 'domain': 'youtube.commentThread'}],
        }
    }).encode('utf-8')
    return HttpError(resp, content)


def video_response(channel_id=OWNER_ID):
    return {'items': [{'snippet': {'channelId': channel_id, 'title': 'Test video'}}]}


def thread(author, text, channel_id):
    snippet = {'authorDisplayName': author, 'textDisplay': text}
    if channel_id is not None:
        snippet['authorChannelId'] = {'value': channel_id}
    return {'snippet': {'topLevelComment': {'snippet': snippet}, 'totalReplyCount': 0}}


@pytest.fixture
def youtube():
    """A YouTube service mock returning one owner comment, one English and one Korean comment."""
    service = MagicMock()
    service.videos.return_value.list.return_value.execute.return_value = video_response()
    service.commentThreads.return_value.list.return_value.execute.return_value = {
        'items': [
            thread(OWNER_ID, "spam", OWNER_ID),
            thread("Alice", "Hello world", "A1"),
            thread("Bob", "안녕하세요", "B1"),
        ]
    }
    return service
