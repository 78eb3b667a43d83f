"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
"""

APP_CSS = """
/* ============================================
   Main Screen Layout - single column
   ============================================ */
Screen {
    layout: vertical;
    background: $background;
}

/* ============================================
   Status Line - sync / processing indicator
   ============================================ */
#status-line {
    height: 1;
    padding: 0 2;
    color: $text-muted;

    &.-busy {
        color: $warning;
        text-style: bold;
    }

    &.-signed-out {
        color: $error;
    }
}

/* ============================================
   Chat History Panel
   ============================================ */
#chat-history {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;
}

.chat-message {
    height: auto;
    margin: 1 0 0 0;
    padding: 0 1;
}

.user-message {
    border-left: thick $accent;
}

.assistant-message {
    border-left: thick $success;

    &.-streaming {
        border-left: thick $warning;
    }

    &.-error {
        border-left: thick $error;
    }
}

.message-header {
    color: $text-muted;
    text-style: bold;
}

.message-content {
    height: auto;
    margin: 0;
}

/* ============================================
   Input Bar
   ============================================ */
#chat-input-bar {
    height: auto;
    max-height: 8;
    padding: 0 1;
}

#chat-input {
    width: 1fr;
    height: auto;
    min-height: 3;
    max-height: 8;
    border: round $primary 60%;

    &:focus {
        border: round $primary;
    }

    &:disabled {
        opacity: 60%;
    }
}

#send-btn {
    width: 10;
    margin: 1 0 0 1;
}
"""
