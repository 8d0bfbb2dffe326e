import re

# Emoticons, symbols & pictographs, transport, regional indicators, misc symbols, dingbats
EMOJI_PATTERN = re.compile(
    "[\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF]"
)


def normalize_text(text: str) -> str:
    text = text or ""
    text = text.strip()
    text = re.sub(r"\s+", " ", text)
    return text


def count_emoji(text: str) -> int:
    return len(EMOJI_PATTERN.findall(text or ""))
