"""
YouTube Korean Comment Filter

This script fetches the top-level comments of a single YouTube video using the
YouTube Data API v3, drops the comments written by the video's own channel, and
saves two CSV files: every remaining comment, and the subset that contains
Korean (Hangul) text.
"""

# ============================================================================
# IMPORTS
# ============================================================================

import argparse
import csv
import json
import os
import re
import tempfile
from typing import List, NamedTuple, Tuple

import httplib2
from dotenv import load_dotenv
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from tqdm import tqdm


# ============================================================================
# CONFIGURATION
# ============================================================================

# Application configuration dictionary
CONFIG = {
    'output_dir': '.',                           # Directory for the CSV output files
    'filtered_filename': 'comments_korean.csv',  # Comments containing Hangul
    'all_filename': 'comments_all.csv',          # Every non-owner comment
    'csv_header': ['Author', 'Comment'],
    'video_url_marker': 'youtube.com/watch?v=',  # Query marker that precedes the video ID
    'api_version': 'v3',                         # YouTube Data API version
}

# Hangul syllables block (U+AC00 - U+D7A3)
KOREAN_PATTERN = re.compile("[가-힣]")

# Placeholder shipped in .env.example
API_KEY_PLACEHOLDER = "your_api_key_here"

# Classification outcomes for a single comment
EXCLUDED = "excluded"
INCLUDED_ALL = "included_all"
INCLUDED_FILTERED = "included_filtered"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class CommentFilterError(Exception):
    """Base class for every error that aborts a run."""

    exit_code = 1
    hint = "Please check your configuration and try again."


class ConfigError(CommentFilterError):
    exit_code = 2
    hint = "Copy .env.example to .env and set YOUTUBE_API_KEY, or pass --api-key."


class ExtractionError(CommentFilterError):
    exit_code = 3
    hint = "Please provide a URL like https://www.youtube.com/watch?v=VIDEO_ID"


class TransportError(CommentFilterError):
    """Network or HTTP failure while talking to the YouTube API."""

    exit_code = 4
    hint = "Please verify your API key, quota and network connection."

    def __init__(self, message, reason=None):
        super().__init__(message)
        self.reason = reason


class DecodeError(CommentFilterError):
    exit_code = 5
    hint = "The YouTube API returned a response that could not be parsed."


class NotFoundError(CommentFilterError):
    exit_code = 6
    hint = "The video may not exist, may be private, or may have been removed."


class OutputError(CommentFilterError):
    exit_code = 7
    hint = "Please check that the output directory exists and is writable."


# ============================================================================
# DATA TYPES
# ============================================================================

class Comment(NamedTuple):
    author: str
    text: str
    author_channel_id: str


class ClassificationResult(NamedTuple):
    """
    Outcome of classifying one fetched comment list.

    all_rows and filtered_rows hold (author, text) pairs in fetch order;
    filtered_rows is always an ordered subset of all_rows.
    """
    all_rows: List[Tuple[str, str]]
    filtered_rows: List[Tuple[str, str]]
    excluded_count: int


# ============================================================================
# API CONFIGURATION
# ============================================================================

def load_api_key(cli_key=None):
    """
    Resolve the YouTube Data API key.

    A key passed on the command line wins over the YOUTUBE_API_KEY
    environment variable (which load_dotenv() fills from the .env file).

    Parameters:
        cli_key (str): Optional key from --api-key

    Returns:
        str: The API key

    Raises:
        ConfigError: If no usable key is configured
    """
    api_key = cli_key or os.getenv("YOUTUBE_API_KEY")
    if not api_key or api_key.strip() in ("", API_KEY_PLACEHOLDER):
        raise ConfigError("YouTube API key not found or not configured properly")
    return api_key.strip()


def build_youtube_client(api_key):
    """Initialize the YouTube Data API v3 service object for the given key."""
    return build("youtube", CONFIG['api_version'], developerKey=api_key)


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def parse_http_error_reason(http_error):
    """
    Extract the reason from an HttpError by parsing its content.

    Parameters:
        http_error (HttpError): The HttpError exception object

    Returns:
        str or None: The error reason (e.g., 'commentsDisabled', 'quotaExceeded') or None if not found
    """
    try:
        error_content = json.loads(http_error.content)
        errors = error_content.get('error', {}).get('errors', [{}])
        if errors:
            return errors[0].get('reason')
        return None
    except (json.JSONDecodeError, UnicodeDecodeError, AttributeError, IndexError, KeyError, TypeError):
        return None


def execute_request(api_func, operation_type):
    """
    Execute a single YouTube API call and translate its failures.

    No retries are attempted: the first failure aborts the run.

    Parameters:
        api_func (callable): A function that makes an API call and returns the response
        operation_type (str): The API operation, used in error messages (e.g., 'videos.list')

    Returns:
        dict: The decoded API response

    Raises:
        TransportError: On HTTP errors and network failures
        DecodeError: If the response body is not valid JSON or not a JSON object
    """
    try:
        response = api_func()
    except HttpError as e:
        reason = parse_http_error_reason(e)
        status = getattr(e.resp, 'status', 'unknown')
        raise TransportError(
            f"{operation_type} failed with HTTP {status} ({reason or 'unknown reason'})",
            reason=reason,
        ) from e
    except (httplib2.HttpLib2Error, OSError) as e:
        raise TransportError(f"{operation_type} request failed: {e}") from e
    except ValueError as e:
        # googleapiclient's JSON model raises ValueError on a malformed body
        raise DecodeError(f"Could not decode {operation_type} response: {e}") from e

    if not isinstance(response, dict):
        raise DecodeError(f"Unexpected {operation_type} response type: {type(response).__name__}")
    return response


def get_video_id(url):
    """
    Extract the video ID from a YouTube watch URL.

    The ID is everything after the "youtube.com/watch?v=" marker up to the next
    '&' (or the end of the string). The ID format itself is not validated.

    Parameters:
        url (str): The full YouTube video URL

    Returns:
        str or None: The video ID, or None if the URL has no marker or an empty ID

    Example:
        >>> get_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42s")
        "dQw4w9WgXcQ"
    """
    marker = CONFIG['video_url_marker']
    index = url.find(marker)
    if index == -1:
        return None

    video_id = url[index + len(marker):].split('&')[0]
    return video_id or None


def atomic_write_csv(file_path, rows, header):
    """
    Atomically write CSV rows to a file using a temporary file and os.replace().

    The file is flushed and synced before it replaces the target, so the target
    is either the complete new file or untouched, whatever path the write takes.

    Parameters:
        file_path (str): The target file path to write to
        rows (iterable): Rows (sequences of strings) to write after the header
        header (list): The header row

    Raises:
        OSError: If the temporary file cannot be created, written or moved
    """
    # Same directory as the target so os.replace() stays on one filesystem
    dir_path = os.path.dirname(os.path.abspath(file_path))

    temp_file = tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', newline='', dir=dir_path,
                                            suffix='.tmp', delete=False)
    temp_path = temp_file.name
    try:
        with temp_file:
            writer = csv.writer(temp_file)
            writer.writerow(header)
            writer.writerows(rows)
            temp_file.flush()
            os.fsync(temp_file.fileno())

        # mkstemp creates 0600 files; give the output the usual umask-based mode
        os.chmod(temp_path, new_file_mode())
        os.replace(temp_path, file_path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def new_file_mode():
    """Return the mode a plain open(path, 'w') would create a file with (0666 minus umask)."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


# ============================================================================
# PIPELINE STEPS
# ============================================================================

def get_video_owner_channel_id(youtube, video_id):
    """
    Retrieve the channel ID of the account that uploaded a video.

    Parameters:
        youtube (Resource): The YouTube API service object
        video_id (str): The video ID extracted from the URL

    Returns:
        str: The uploader's channel ID

    Raises:
        NotFoundError: If the API returns no video for the ID
        TransportError: For HTTP and network errors
        DecodeError: For malformed responses
    """
    response = execute_request(
        lambda: youtube.videos().list(
            part="snippet",
            id=video_id
        ).execute(),
        operation_type='videos.list'
    )

    items = response.get('items') or []
    if not items:
        raise NotFoundError(f"No video information found for: {video_id}")

    # Structure: response['items'][0]['snippet']['channelId']
    try:
        return items[0]['snippet']['channelId']
    except (KeyError, TypeError, IndexError) as e:
        raise DecodeError(f"videos.list response is missing the channel ID: {e!r}") from e


def fetch_video_comments(youtube, video_id):
    """
    Retrieve the first page of top-level comments for a video.

    Only one commentThreads().list() call is made, with the API's default page
    size; replies and later pages are not fetched. A video with comments
    disabled yields an empty list.

    Parameters:
        youtube (Resource): The YouTube API service object
        video_id (str): The video ID to fetch comments from

    Returns:
        list of Comment: Comments in API response order

    Raises:
        TransportError: For HTTP and network errors
        DecodeError: For malformed responses
    """
    try:
        response = execute_request(
            lambda: youtube.commentThreads().list(
                part="snippet",
                videoId=video_id,
                textFormat="plainText"
            ).execute(),
            operation_type='commentThreads.list'
        )
    except TransportError as e:
        if e.reason == 'commentsDisabled':
            print(f"Warning: Comments are disabled for video {video_id}")
            return []
        raise

    comments = []
    try:
        for thread in response.get('items') or []:
            # Structure: thread['snippet']['topLevelComment']['snippet']
            top_level_comment = thread['snippet']['topLevelComment']['snippet']

            # Authors without a channel have no authorChannelId object
            author_channel = top_level_comment.get('authorChannelId') or {}

            comments.append(Comment(
                author=top_level_comment.get('authorDisplayName', ''),
                text=top_level_comment.get('textDisplay', ''),
                author_channel_id=author_channel.get('value', ''),
            ))
    except (KeyError, TypeError, AttributeError) as e:
        raise DecodeError(f"commentThreads.list response has an unexpected structure: {e!r}") from e

    return comments


def classify_comment(comment, owner_channel_id):
    """Return EXCLUDED, INCLUDED_ALL or INCLUDED_FILTERED for one comment."""
    if comment.author_channel_id == owner_channel_id:
        return EXCLUDED
    if KOREAN_PATTERN.search(comment.text):
        return INCLUDED_FILTERED
    return INCLUDED_ALL


def classify_comments(comments, owner_channel_id):
    all_rows = []
    filtered_rows = []
    excluded_count = 0

    for comment in tqdm(comments, desc="Classifying comments", disable=not comments):
        outcome = classify_comment(comment, owner_channel_id)
        if outcome == EXCLUDED:
            excluded_count += 1
            continue

        row = (comment.author, comment.text)
        all_rows.append(row)
        if outcome == INCLUDED_FILTERED:
            filtered_rows.append(row)

    return ClassificationResult(all_rows, filtered_rows, excluded_count)


def write_comment_files(result, output_dir):
    """
    Write the filtered and the all-comments CSV files.

    Parameters:
        result (ClassificationResult): Rows to write
        output_dir (str): Directory for both files (created if missing)

    Returns:
        tuple: (filtered_file_path, all_file_path)

    Raises:
        OutputError: If either file cannot be created or written
    """
    filtered_file = os.path.join(output_dir, CONFIG['filtered_filename'])
    all_file = os.path.join(output_dir, CONFIG['all_filename'])

    try:
        os.makedirs(output_dir, exist_ok=True)
        atomic_write_csv(filtered_file, result.filtered_rows, CONFIG['csv_header'])
        atomic_write_csv(all_file, result.all_rows, CONFIG['csv_header'])
    except OSError as e:
        raise OutputError(f"Could not write comment files: {e}") from e

    return filtered_file, all_file


def run_pipeline(youtube, video_url, output_dir):
    """
    Extract the video ID, resolve the owner, fetch, classify and write.

    Every step raises a CommentFilterError subclass on failure; nothing is
    written unless fetching and classification both succeed.

    Returns:
        ClassificationResult: The rows that were written
    """
    # Step 1: Extract Video ID
    video_id = get_video_id(video_url)
    if not video_id:
        raise ExtractionError(f"Unable to extract video ID from URL: {video_url!r}")
    print(f"Processing video: {video_id}")

    # Step 2: Resolve Video Owner
    owner_channel_id = get_video_owner_channel_id(youtube, video_id)
    print(f"Video owner channel: {owner_channel_id}")

    # Step 3: Fetch Top-Level Comments
    comments = fetch_video_comments(youtube, video_id)
    print(f"Fetched {len(comments)} top-level comments")
    print()

    # Step 4: Classify
    result = classify_comments(comments, owner_channel_id)

    # Step 5: Write
    filtered_file, all_file = write_comment_files(result, output_dir)

    print()
    print("=" * 70)
    print("Processing complete!")
    print("=" * 70)
    print(f"Comments fetched: {len(comments)}")
    print(f"Owner comments excluded: {result.excluded_count}")
    print(f"Comments saved: {len(result.all_rows)} -> {all_file}")
    print(f"Korean comments saved: {len(result.filtered_rows)} -> {filtered_file}")
    print("=" * 70)

    return result


# ============================================================================
# MAIN EXECUTION
# ============================================================================

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Save the Korean and all non-owner top-level comments of a YouTube video to CSV',
        epilog='Without --video the URL is read from an interactive prompt. See README.md for setup.'
    )
    parser.add_argument(
        '--video',
        type=str,
        help='YouTube video URL (e.g., https://www.youtube.com/watch?v=VIDEO_ID)'
    )
    parser.add_argument(
        '--api-key',
        type=str,
        help='YouTube Data API v3 key (overrides .env file)'
    )
    parser.add_argument(
        '--output-dir',
        type=str,
        default=CONFIG['output_dir'],
        help='Directory for the CSV files (default: current directory)'
    )
    return parser.parse_args(argv)


def print_config_help():
    print("=" * 70)
    print("ERROR: YouTube API key not found or not configured properly")
    print("=" * 70)
    print()
    print("Please follow these steps:")
    print("1. Copy .env.example to .env")
    print("   $ cp .env.example .env")
    print()
    print("2. Get your API key from Google Cloud Console:")
    print("   https://console.cloud.google.com/apis/credentials")
    print()
    print("3. Edit .env and add your API key:")
    print("   YOUTUBE_API_KEY=your_actual_api_key_here")
    print()
    print("4. Make sure YouTube Data API v3 is enabled in your project")
    print("=" * 70)


def main(argv=None):
    """Command-line entry point. Returns the process exit code."""
    args = parse_args(argv)

    # Load environment variables from .env file
    load_dotenv()

    try:
        try:
            api_key = load_api_key(args.api_key)
        except ConfigError as e:
            print_config_help()
            print(e.hint)
            return e.exit_code

        youtube = build_youtube_client(api_key)

        print()
        if args.video:
            video_url = args.video.strip()
        else:
            video_url = input("Enter the YouTube video URL: ").strip()
        print()

        run_pipeline(youtube, video_url, args.output_dir)
        return 0

    except CommentFilterError as e:
        print(f"Error: {e}")
        print(e.hint)
        return e.exit_code
    except KeyboardInterrupt:
        print("\n\nScript interrupted by user.")
        return 130
    except Exception as e:
        print(f"\nUnexpected error: {e}")
        print("Please check your configuration and try again.")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
