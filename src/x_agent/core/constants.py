"""
Shared Constants for X Agents
=============================
Centralized URLs, environment variable names, default timeouts and the
built-in locator chains for every semantic UI role.
"""

import os

# Base directories
LOGS_DIR = os.path.join(os.getcwd(), "logs")
DEBUG_DIR = os.path.join(os.getcwd(), "debug")

# Site URLs
X_BASE_URL = "https://x.com"
X_HOME_URL = f"{X_BASE_URL}/home"
X_LOGIN_URL = f"{X_BASE_URL}/i/flow/login"
X_EXPLORE_URL = f"{X_BASE_URL}/explore"
X_SEARCH_URL = f"{X_BASE_URL}/search"

# Locations that mean "not authenticated"
LOGIN_URL_MARKERS = ["/i/flow/login", "twitter.com/login", "x.com/login"]

# Environment variables
ENV_USERNAME = "TWITTER_USERNAME"
ENV_PASSWORD = "TWITTER_PASSWORD"
ENV_SECONDARY_ID = "TWITTER_EMAIL"
ENV_PROXY_URL = "PROXY_URL"
ENV_PROXY_USERNAME = "PROXY_USERNAME"
ENV_PROXY_PASSWORD = "PROXY_PASSWORD"
ENV_AUTH_STATE_PATH = "AUTH_STATE_PATH"
ENV_HEADLESS = "HEADLESS"
ENV_SLOW_MO = "BROWSER_SLOW_MO"
ENV_CONFIG_PATH = "X_AGENT_CONFIG"
ENV_HUMANIZE = "HUMANIZE"

DEFAULT_AUTH_STATE_PATH = os.path.join("playwright", ".auth", "twitter.json")
DEFAULT_CONFIG_PATH = "config.json"

# Browser
DEFAULT_DEVICE = "Desktop Chrome"
DEFAULT_LOCALE = "en-US"
DEFAULT_LAUNCH_TIMEOUT = 60000  # ms

# Default timeouts (seconds)
DEFAULT_PAGE_LOAD_TIMEOUT = 30.0
DEFAULT_LOGIN_STEP_TIMEOUT = 10.0
DEFAULT_LOGIN_SUBMIT_TIMEOUT = 20.0
DEFAULT_SCRAPE_TIMEOUT = 30.0
DEFAULT_SCROLL_DELAY = 2.0
DEFAULT_GROWTH_TIMEOUT = 5.0
DEFAULT_POLL_INTERVAL = 60.0

# Scrape defaults
DEFAULT_TARGET_COUNT = 10
DEFAULT_MONITOR_TARGET = 20

# Locator chains, tried in order. {name} placeholders are filled per call.
DEFAULT_LOCATORS = {
    # Login flow
    "identifier_field": [
        'input[autocomplete="username"]',
        'input[name="text"]',
        "//input[@autocomplete='username']",
    ],
    "advance_button": [
        "button:has-text('Next')",
        "//span[contains(text(), 'Next')]",
        '[role="button"]:has-text("Next")',
    ],
    "verification_field": [
        'input[data-testid="ocfEnterTextTextInput"]',
        'input[name="text"][autocomplete="on"]',
        'input[autocomplete="email"]',
        'input[type="tel"]',
    ],
    "challenge_marker": [
        "text=/unusual (login )?activity/i",
        "text=/verify (it's|its) you/i",
        'iframe[src*="arkoselabs"]',
    ],
    "challenge_continue": [
        "button:has-text('Continue')",
        "button:has-text('Start')",
        "button:has-text('Verify')",
        "button:has-text('Send email')",
    ],
    "password_field": [
        'input[autocomplete="current-password"]',
        'input[name="password"]',
        "//input[@autocomplete='current-password']",
    ],
    "login_button": [
        'button[data-testid="LoginForm_Login_Button"]',
        "button:has-text('Log in')",
        "//span[contains(text(), 'Log in')]",
    ],
    "wrong_credentials_marker": [
        "text=/wrong password/i",
        "text=/sorry, we could not find your account/i",
        "text=/incorrect/i",
    ],
    "alert_marker": [
        '[role="alert"]',
        '[data-testid="toast"]',
    ],

    # Page furniture
    "cookie_refuse": [
        "//span[contains(text(), 'Refuse non-essential cookies')]",
    ],
    "cookie_banner": ['[data-testid="BottomBar"]'],
    "close_button": ['[aria-label="Close"]'],
    "replies_region": ['section[role="region"]'],
    "timeline_tab": [
        'nav[role="navigation"] a[role="tab"]:has-text("{tab}")',
        'a[role="tab"]:has-text("{tab}")',
    ],

    # Feed items
    "feed_item": ['article[data-testid="tweet"]', "article[role='article']"],
    "ad_marker": [
        '[data-testid="placementTracking"]',
        "//span[text()='Ad']",
        "//span[text()='Promoted']",
    ],
    "item_link": ['a[href*="/status/"]:has(time)', 'a[href*="/status/"]'],
    "item_status_links": ['a[href*="/status/"]'],
    "item_author_link": ['[data-testid="User-Name"] a'],
    "item_display_name": ['[data-testid="User-Name"] span'],
    "item_avatar": ['img[src*="profile_images"]'],
    "item_verified_badge": ['[aria-label="Verified account"]'],
    "item_blue_badge": ['[aria-label*="verified"]'],
    "item_text": ['[data-testid="tweetText"]'],
    "item_time": ["time"],
    "item_photo": ['[data-testid="tweetPhoto"] img'],
    "item_video": ["video"],
    "item_social_context": ['[data-testid="socialContext"]'],
    "metric_replies": ['[data-testid="reply"]'],
    "metric_reshares": ['[data-testid="retweet"]', '[data-testid="unretweet"]'],
    "metric_likes": ['[data-testid="like"]', '[data-testid="unlike"]'],
    "metric_impressions": ['[href$="/analytics"]'],
    "metric_bookmarks": ['[data-testid="bookmark"]', '[data-testid="removeBookmark"]'],

    # Profile page
    "profile_not_found": ["text=\"This account doesn't exist\""],
    "profile_name_block": ['[data-testid="UserName"]'],
    "profile_display_name": ["span:first-child"],
    "profile_handle": ["span:last-child"],
    "profile_avatar": [
        'a[href$="/photo"] img',
        'div[data-testid="UserAvatar-Container-unknown"] img',
    ],
    "profile_banner": ['a[href$="/header_photo"] img'],
    "profile_bio": ['[data-testid="UserDescription"]'],
    "profile_location": ['[data-testid="UserLocation"] span'],
    "profile_website": ['[data-testid="UserUrl"] a'],
    "profile_join_date": ['[data-testid="UserJoinDate"] span'],
    "profile_following": ['a[href="/{username}/following"]'],
    "profile_followers": [
        'a[href="/{username}/verified_followers"]',
        'a[href="/{username}/followers"]',
    ],
    "profile_posts_count": ['nav[role="navigation"] div[dir="ltr"] span'],
    "profile_verified": ['[data-testid="UserName"] [aria-label="Verified account"]'],
    "profile_blue_verified": ['[data-testid="UserName"] svg[aria-label*="verified"]'],
    "profile_follow_button": ['[data-testid$="-follow"]', '[data-testid$="-unfollow"]'],
    "profile_follows_you": ["text=/Follows you/i"],

    # Explore
    "trend_item": ['[data-testid="trend"]'],
    "trend_text": ['span[dir="ltr"]'],
}
