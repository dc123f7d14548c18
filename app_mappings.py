"""Static application tables: known apps, browser title patterns, formatting prompts."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from models import ContextType


@dataclass(frozen=True)
class ApplicationMapping:
    app_name: str
    context_type: ContextType
    aliases: tuple[str, ...] = ()
    bundle_ids: tuple[str, ...] = ()
    process_names: tuple[str, ...] = ()

    @property
    def application_id(self) -> str:
        return to_application_id(self.app_name)


@dataclass(frozen=True)
class BrowserPattern:
    application_id: str
    patterns: tuple[str, ...]
    description: str


@dataclass(frozen=True)
class ApplicationPrompt:
    application_id: str
    display_name: str
    context_type: ContextType
    prompt: str


def to_application_id(app_name: str) -> str:
    """'Microsoft Outlook' -> 'outlook', 'Visual Studio Code' -> 'visual-studio-code'."""
    value = re.sub(r"[^\w\s-]", "", app_name.lower())
    value = re.sub(r"\s+", "-", value.strip())
    return re.sub(r"^(microsoft|apple|google)-", "", value)


E, N, C, M, D, B, T, P = (
    ContextType.EMAIL,
    ContextType.NOTES,
    ContextType.CODE_EDITOR,
    ContextType.MESSAGING,
    ContextType.DOCUMENT,
    ContextType.BROWSER,
    ContextType.TERMINAL,
    ContextType.PRESENTATION,
)

# Order matters: equal scores resolve to the earlier entry.
APPLICATION_MAPPINGS: tuple[ApplicationMapping, ...] = (
    # Email
    ApplicationMapping("Mail", E, ("apple mail", "mail.app"), ("com.apple.mail",), ("mail",)),
    ApplicationMapping("Microsoft Outlook", E, ("outlook", "outlook.exe"), ("com.microsoft.Outlook",), ("outlook",)),
    ApplicationMapping("Thunderbird", E, ("mozilla thunderbird",), ("org.mozilla.thunderbird",), ("thunderbird",)),
    ApplicationMapping("Airmail", E, ("airmail 5",), ("it.bloop.airmail2",), ("airmail",)),
    ApplicationMapping("Spark", E, ("spark email", "spark mail"), ("com.readdle.smartemail-Mac",), ("spark",)),
    # Notes
    ApplicationMapping("Notes", N, ("apple notes", "notes.app"), ("com.apple.Notes",), ("notes",)),
    ApplicationMapping("Notion", N, ("notion.so",), ("notion.id",), ("notion",)),
    ApplicationMapping("Obsidian", N, ("obsidian.md",), ("md.obsidian",), ("obsidian",)),
    ApplicationMapping("Logseq", N, (), ("com.electron.logseq",), ("logseq",)),
    ApplicationMapping("Bear", N, ("bear notes",), ("net.shinyfrog.bear",), ("bear",)),
    ApplicationMapping("Joplin", N, (), ("net.cozic.joplin-desktop",), ("joplin",)),
    ApplicationMapping("Evernote", N, (), ("com.evernote.Evernote",), ("evernote",)),
    ApplicationMapping("OneNote", N, ("microsoft onenote",), ("com.microsoft.onenote.mac",), ("onenote",)),
    # Code editors
    ApplicationMapping("Visual Studio Code", C, ("vscode", "code", "vs code"), ("com.microsoft.VSCode",), ("code",)),
    ApplicationMapping("Xcode", C, (), ("com.apple.dt.Xcode",), ("xcode",)),
    ApplicationMapping("Sublime Text", C, ("sublime",), ("com.sublimetext.4",), ("sublime_text",)),
    ApplicationMapping("WebStorm", C, ("jetbrains webstorm",), ("com.jetbrains.WebStorm",), ("webstorm",)),
    ApplicationMapping("IntelliJ IDEA", C, ("intellij", "idea"), ("com.jetbrains.intellij",), ("idea",)),
    # Messaging
    ApplicationMapping("Messages", M, ("apple messages", "imessage"), ("com.apple.MobileSMS",), ("messages",)),
    ApplicationMapping("Slack", M, (), ("com.tinyspeck.slackmacgap",), ("slack",)),
    ApplicationMapping("Discord", M, (), ("com.hnc.Discord",), ("discord",)),
    ApplicationMapping("Microsoft Teams", M, ("teams",), ("com.microsoft.teams",), ("teams",)),
    ApplicationMapping("WhatsApp", M, ("whatsapp desktop",), ("net.whatsapp.WhatsApp",), ("whatsapp",)),
    ApplicationMapping("Telegram", M, ("telegram desktop",), ("ru.keepcoder.Telegram",), ("telegram",)),
    ApplicationMapping("Signal", M, ("signal desktop",), ("org.whispersystems.signal-desktop",), ("signal",)),
    # Documents
    ApplicationMapping("Microsoft Word", D, ("word", "ms word"), ("com.microsoft.Word",), ("winword",)),
    ApplicationMapping("Pages", D, ("apple pages",), ("com.apple.iWork.Pages",), ("pages",)),
    ApplicationMapping("LibreOffice Writer", D, ("libreoffice", "writer"), ("org.libreoffice.script",), ("soffice",)),
    ApplicationMapping("TextEdit", D, ("text edit",), ("com.apple.TextEdit",), ("textedit",)),
    # Browsers
    ApplicationMapping("Safari", B, ("apple safari",), ("com.apple.Safari",), ("safari",)),
    ApplicationMapping("Google Chrome", B, ("chrome",), ("com.google.Chrome",), ("chrome",)),
    ApplicationMapping("Firefox", B, ("mozilla firefox",), ("org.mozilla.firefox",), ("firefox",)),
    ApplicationMapping("Microsoft Edge", B, ("edge",), ("com.microsoft.edgemac",), ("msedge",)),
    ApplicationMapping("Arc", B, ("arc browser",), ("company.thebrowser.Browser",), ("arc",)),
    # Terminals
    ApplicationMapping("Terminal", T, ("apple terminal", "terminal.app"), ("com.apple.Terminal",), ("terminal",)),
    ApplicationMapping("iTerm2", T, ("iterm",), ("com.googlecode.iterm2",), ("iterm2",)),
    ApplicationMapping("Hyper", T, ("hyper terminal",), ("co.zeit.hyper",), ("hyper",)),
    ApplicationMapping("Kitty", T, (), ("net.kovidgoyal.kitty",), ("kitty",)),
    ApplicationMapping("Alacritty", T, (), ("org.alacritty",), ("alacritty",)),
    # Presentations
    ApplicationMapping("Keynote", P, ("apple keynote",), ("com.apple.iWork.Keynote",), ("keynote",)),
    ApplicationMapping("Microsoft PowerPoint", P, ("powerpoint", "ppt"), ("com.microsoft.Powerpoint",), ("powerpnt",)),
)

BROWSER_NAMES = ("safari", "google chrome", "chrome", "chromium", "firefox", "microsoft edge", "arc", "brave")

# First match wins.
BROWSER_PATTERNS: tuple[BrowserPattern, ...] = (
    BrowserPattern("gmail", ("gmail", "mail.google.com", "inbox - ", "compose - gmail"), "Gmail"),
    BrowserPattern("browser-github", ("github.com", "github", "pull request", "issues · "), "GitHub"),
    BrowserPattern("browser-stackoverflow", ("stack overflow", "stackoverflow"), "Stack Overflow"),
    BrowserPattern("docs", ("docs.google.com", "google docs"), "Google Docs"),
    BrowserPattern("slack", ("slack.com", " | slack", " - slack"), "Slack"),
    BrowserPattern("notion", ("notion.so", "notion.com", " - notion", "| notion"), "Notion"),
    BrowserPattern("browser-linkedin", ("linkedin.com", "linkedin"), "LinkedIn"),
    BrowserPattern("browser-twitter", ("twitter.com", "x.com", " / x", " / twitter", " on x"), "Twitter/X"),
    BrowserPattern("whatsapp", ("web.whatsapp.com", "whatsapp web"), "WhatsApp Web"),
    BrowserPattern("discord", ("discord.com", "discord"), "Discord"),
    BrowserPattern("figma", ("figma.com", " – figma", " - figma"), "Figma"),
)

# Fallback buckets, only consulted when the title looks like a site.
BROWSER_KEYWORD_BUCKETS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("docs", ("doc", "edit", "write")),
    ("gmail", ("mail", "inbox", "@")),
    ("slack", ("chat", "message", "conversation")),
)

EMAIL_TITLE_KEYWORDS = ("gmail", "compose", "@")
CODE_TITLE_KEYWORDS = (".js", ".ts", ".py", ".java")

DEFAULT_APPLICATION_ID = "default"

APPLICATION_PROMPTS: tuple[ApplicationPrompt, ...] = (
    # Messaging
    ApplicationPrompt("slack", "Slack", M, "Format for Slack team communication. Use a clear, professional yet friendly tone. Keep messages concise but informative and use bullet points for multiple items."),
    ApplicationPrompt("discord", "Discord", M, "Format for Discord community chat. Use a casual, friendly tone and keep messages conversational."),
    ApplicationPrompt("whatsapp", "WhatsApp", M, "Format for WhatsApp personal messaging. Use a casual, friendly tone, natural and conversational, as if speaking to friends or family."),
    ApplicationPrompt("telegram", "Telegram", M, "Format for Telegram messaging. Use clear, direct communication and keep messages well-structured and easy to read."),
    ApplicationPrompt("teams", "Microsoft Teams", M, "Format for Microsoft Teams. Use a professional, clear tone suitable for workplace collaboration."),
    ApplicationPrompt("messages", "Messages (iMessage)", M, "Format for Apple Messages. Use a personal, casual tone suitable for friends and family."),
    ApplicationPrompt("signal", "Signal", M, "Format for Signal messaging. Keep it short, casual and conversational."),
    # Notes
    ApplicationPrompt("notion", "Notion", N, "Format for Notion. Organize content with clear headers, bullet points and block-based structure."),
    ApplicationPrompt("obsidian", "Obsidian", N, "Format for Obsidian. Use markdown with clear headers and bullet points, suitable for a linked knowledge base."),
    ApplicationPrompt("logseq", "Logseq", N, "Format for Logseq. Structure content in logical bullet blocks with indentation where useful."),
    ApplicationPrompt("notes", "Apple Notes", N, "Format for Apple Notes. Use a clean, simple structure with headers and bullet points."),
    ApplicationPrompt("evernote", "Evernote", N, "Format for Evernote. Structure content with clear headers for later search and organization."),
    ApplicationPrompt("bear", "Bear", N, "Format for Bear. Use markdown with headers, bullet points and clean structure."),
    ApplicationPrompt("joplin", "Joplin", N, "Format for Joplin. Use markdown notes with headers and bullet points."),
    ApplicationPrompt("onenote", "OneNote", N, "Format for OneNote. Use short sections with headers and bullet points."),
    # Email
    ApplicationPrompt("gmail", "Gmail", E, "Format as a professional email with an appropriate greeting and closing, proper paragraphs, and bullet points when needed."),
    ApplicationPrompt("outlook", "Microsoft Outlook", E, "Format as a corporate email with a professional business tone, greeting, body paragraphs and closing."),
    ApplicationPrompt("mail", "Apple Mail", E, "Format as a clean email suitable for personal or business contexts, with clear, concise paragraphs."),
    ApplicationPrompt("thunderbird", "Thunderbird", E, "Format as a clear email with greeting, body paragraphs and closing."),
    ApplicationPrompt("spark", "Spark", E, "Format as a concise email with greeting and closing."),
    ApplicationPrompt("airmail", "Airmail", E, "Format as a concise email with greeting and closing."),
    # Code
    ApplicationPrompt("visual-studio-code", "Visual Studio Code", C, "Format for a code editor: code comments, documentation or commit messages. Use clear, concise technical language."),
    ApplicationPrompt("xcode", "Xcode", C, "Format for Swift or Objective-C code comments and development notes with technical precision."),
    ApplicationPrompt("webstorm", "WebStorm", C, "Format for JavaScript/TypeScript comments and web development notes."),
    ApplicationPrompt("sublime-text", "Sublime Text", C, "Format concise technical content suitable for code comments."),
    ApplicationPrompt("intellij-idea", "IntelliJ IDEA", C, "Format for code comments and technical documentation."),
    # Documents
    ApplicationPrompt("word", "Microsoft Word", D, "Format as a document with proper paragraphs and formal writing standards."),
    ApplicationPrompt("pages", "Apple Pages", D, "Format as a clean, well-structured document with good flow."),
    ApplicationPrompt("docs", "Google Docs", D, "Format for collaborative document writing with clear, structured paragraphs."),
    ApplicationPrompt("libreoffice-writer", "LibreOffice Writer", D, "Format as a document with proper paragraphs."),
    ApplicationPrompt("textedit", "TextEdit", D, "Format as plain, well-punctuated paragraphs."),
    # Terminals and presentations
    ApplicationPrompt("terminal", "Terminal", T, "Keep the text minimal and literal. Do not add prose around commands."),
    ApplicationPrompt("iterm2", "iTerm2", T, "Keep the text minimal and literal. Do not add prose around commands."),
    ApplicationPrompt("keynote", "Keynote", P, "Format as short bullet points suitable for slides."),
    ApplicationPrompt("powerpoint", "Microsoft PowerPoint", P, "Format as short bullet points suitable for slides."),
    # Browser contexts
    ApplicationPrompt("browser-github", "GitHub (Browser)", B, "Format for GitHub: commit messages, pull request descriptions or issue reports with technical precision."),
    ApplicationPrompt("browser-stackoverflow", "Stack Overflow (Browser)", B, "Format as a clear, precise technical question, answer or comment."),
    ApplicationPrompt("browser-twitter", "Twitter/X (Browser)", B, "Keep it concise and engaging, suitable for a social media post."),
    ApplicationPrompt("browser-linkedin", "LinkedIn (Browser)", B, "Use a professional, engaging tone suitable for business networking."),
    ApplicationPrompt("figma", "Figma", B, "Format as concise design feedback or component descriptions."),
    ApplicationPrompt(DEFAULT_APPLICATION_ID, "Default", ContextType.UNKNOWN, "Use clear, readable formatting appropriate for general text while preserving the original meaning and intent."),
)

_PROMPTS_BY_ID = {prompt.application_id: prompt for prompt in APPLICATION_PROMPTS}

# User-selectable modes used when automatic detection is off.
MODE_PROMPTS: dict[str, str] = {
    "notes": "Structure this as clear, organized notes with bullet points and proper formatting for easy reading and reference.",
    "messages": "Keep this casual and conversational, appropriate for messaging apps with a natural, friendly tone.",
    "email": "Format this as a professional email with proper greeting, well-structured body paragraphs, and appropriate closing.",
    "code_comments": "Write this as clear technical documentation with proper explanations and professional coding standards.",
    "meeting_notes": "Organize this as structured meeting minutes with agenda items, key discussion points, decisions made, and action items.",
    "creative_writing": "Express this with creative flair, vivid descriptions and engaging language.",
}

CUSTOM_MODE = "custom"


def get_application_prompt(application_id: str) -> Optional[ApplicationPrompt]:
    return _PROMPTS_BY_ID.get(application_id)


def get_default_application_prompt() -> ApplicationPrompt:
    return _PROMPTS_BY_ID[DEFAULT_APPLICATION_ID]
