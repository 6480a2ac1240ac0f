"""Comment syntax per language, resolved once into a static table.

Rules are declared comment-token first (which extensions use ``//``, which
use ``/* */`` ...) because that is how the syntax families are shared, then
resolved once at import time into ``LANGUAGE_RULES``: extension -> rule set.

Adding a language:
  1. Add its extension to the relevant token lists below.
  2. That's it. ``get_language_rules`` picks it up automatically.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LanguageRules:
    """Everything the line classifier needs to know about a language."""

    extension: str
    single_line: tuple[str, ...] = ()
    # (start, end) pairs; a block opened by a start token is closed only by its own end token.
    block: tuple[tuple[str, str], ...] = ()
    # Whitespace-only (but non-empty) lines count as code.
    indentation_sensitive: bool = False


# ── Token tables ───────────────────────────────────────────────────
# Order matters: the first matching prefix wins.

_SINGLE_LINE: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("//", ("js", "ts", "jsx", "tsx", "java", "cpp", "c", "cs", "go", "rs", "php", "swift",
            "kt", "scala", "dart", "groovy", "sh", "bash", "zsh", "fish", "pl", "pm", "r",
            "m", "mm", "sql", "lua", "jsm", "cjs", "mjs")),
    ("#", ("py", "rb", "pl", "pm", "r", "sh", "bash", "zsh", "fish", "yaml", "yml", "toml",
           "dockerfile", "dockerignore", "gitignore", "npmignore", "properties", "conf",
           "ini", "cfg")),
    ("--", ("sql", "lua", "haskell", "hs", "elm", "ada", "vhdl", "vhd")),
    (";", ("lisp", "clj", "cljs", "cljc", "edn", "racket", "scheme", "asm", "s", "nasm", "fasm")),
    ("%", ("latex", "tex", "sty", "cls", "matlab", "m", "octave", "prolog", "pl", "swi", "swipl")),
    ("(*", ("fsharp", "fs", "fsi", "fsx", "ml", "mli", "ocaml", "ml4", "mll", "mly")),
    ("REM", ("bat", "cmd", "vb", "vbs", "vba", "bas")),
    ("::", ("bat", "cmd")),
    ("//!", ("rs", "cpp", "c")),
    ("///", ("rs", "cpp", "c", "cs")),
)

_C_FAMILY = ("js", "ts", "jsx", "tsx", "java", "cpp", "c", "cs", "go", "rs", "php", "swift",
             "kt", "scala", "dart", "groovy", "css", "scss", "sass", "less", "sql", "lua",
             "jsm", "cjs", "mjs")

_BLOCK: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("/*", "*/", _C_FAMILY),
    ("(*", "*)", ("fsharp", "fs", "fsi", "fsx", "ml", "mli", "ocaml", "ml4", "mll", "mly")),
    ('"""', '"""', ("py", "rb", "groovy")),
    ("'''", "'''", ("py", "groovy")),
    ("<!--", "-->", ("html", "htm", "xhtml", "xml", "xsl", "svg", "vue", "svelte", "astro")),
    ("{-", "-}", ("haskell", "hs", "elm", "lhs")),
    ("#|", "|#", ("racket", "scheme")),
    ("<%--", "--%>", ("asp", "aspx")),
    ("{{!--", "--}}", ("hbs", "handlebars")),
    ("###", "###", ("cr", "crystal")),
    ("=begin", "=end", ("rb",)),
    ("=pod", "=cut", ("pl", "pm")),
)

_INDENTATION_SENSITIVE = frozenset(
    {"py", "rb", "yaml", "yml", "coffee", "coffeelitre", "haml", "sass", "slim", "pug", "jade"}
)


def _resolve(extension: str) -> LanguageRules:
    return LanguageRules(
        extension=extension,
        single_line=tuple(token for token, exts in _SINGLE_LINE if extension in exts),
        block=tuple((start, end) for start, end, exts in _BLOCK if extension in exts),
        indentation_sensitive=extension in _INDENTATION_SENSITIVE,
    )


def _build_table() -> dict[str, LanguageRules]:
    extensions: set[str] = set(_INDENTATION_SENSITIVE)
    for _, exts in _SINGLE_LINE:
        extensions.update(exts)
    for _, _, exts in _BLOCK:
        extensions.update(exts)
    return {ext: _resolve(ext) for ext in sorted(extensions)}


LANGUAGE_RULES: dict[str, LanguageRules] = _build_table()


def get_language_rules(extension: str) -> LanguageRules:
    """Rule set for an extension (no dot, any case).

    Unknown extensions get an empty rule set: every non-blank line is code.
    """
    ext = extension.lower().lstrip(".")
    rules = LANGUAGE_RULES.get(ext)
    if rules is None:
        return LanguageRules(extension=ext)
    return rules


def supported_extensions() -> list[str]:
    return sorted(LANGUAGE_RULES)
