# -----------------------------------------------------------------------------
# SGR (Select Graphic Rendition) ANSI control sequences for console output
# -----------------------------------------------------------------------------
import re


def sgr_seq(*params: int) -> str:
    return '\033[' + ';'.join(str(param) for param in params) + 'm'


class SGRRegistry:
    FMT_RESET = sgr_seq(0)
    FMT_RED = sgr_seq(31)
    FMT_YELLOW = sgr_seq(33)
    FMT_CYAN = sgr_seq(36)

    SGR_REGEX = re.compile(r'\033\[[0-9;]*m')

    @staticmethod
    def remove_sgr_seqs(s: str) -> str:
        return SGRRegistry.SGR_REGEX.sub('', s)

    @staticmethod
    def colorize(text: str, seq: str) -> str:
        return f'{seq}{text}{SGRRegistry.FMT_RESET}'
