#!/usr/bin/env python3
# httpbrute - brute-force HTTP paths with a fixed worker pool. transient failures are retried until they stick.
# author - httpbrute maintainers

import argparse
import gzip
import io
import json
import re
import signal
import sys
import threading
import time
import queue
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional
from urllib.parse import urljoin, urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from tqdm import tqdm
from colorama import init as colorama_init, Fore, Style

# ---------- Globals ----------
STOP_EVENT = threading.Event()
SIGINT_COUNT = 0  # for double-press hard exit

_DEFAULT_WORKERS = 4
_DEFAULT_RETRY_WAIT = "10s"
_MAX_REDIRECTS = 10

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/125.0.0.0 Safari/537.36"
)

_DRAIN_MAX_BYTES = 262_144  # 256 KB

# How often a producer blocked on a full channel rechecks the stop event.
_PUT_POLL_INTERVAL = 0.5

_TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"

_DURATION_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|s|m|h)")
_DURATION_FULL_RE = re.compile(r"(?:(?:\d+(?:\.\d*)?|\.\d+)(?:ms|s|m|h))+")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

# urllib3 puts connection object reprs in its messages; they differ per attempt.
_OBJECT_ADDR_RE = re.compile(r" object at 0x[0-9a-fA-F]+")


# ═══════════════════════════════════════════════════════════════
#  Formatting helpers
# ═══════════════════════════════════════════════════════════════

def _fmt_duration(seconds: float) -> str:
    """Go-style duration text, e.g. 10s, 1m30s, 250ms."""
    seconds = round(seconds, 3)
    if seconds == 0:
        return "0s"
    if seconds < 1.0:
        return f"{seconds * 1000:.0f}ms"
    hours, rem = divmod(seconds, 3600)
    mins, secs = divmod(rem, 60)
    out = ""
    if hours:
        out += f"{int(hours)}h"
    if hours or mins:
        out += f"{int(mins)}m"
    return out + f"{round(secs, 3):g}s"


def _fmt_suffixes(suffixes: Iterable[str]) -> str:
    return "[" + " ".join(json.dumps(s) for s in suffixes) + "]"


def describe_error(exc: BaseException) -> str:
    """Stable one-line text for a transport error."""
    return _OBJECT_ADDR_RE.sub("", f"{type(exc).__name__}: {exc}")


def parse_duration(text: str) -> float:
    """
    Parse a wait duration into seconds.  Accepts Go-style durations
    ("10s", "500ms", "1m30s", "1h") or a bare number of seconds.
    """
    s = text.strip().lower()
    if not s:
        raise ValueError("empty duration")
    try:
        value = float(s)
    except ValueError:
        if not _DURATION_FULL_RE.fullmatch(s):
            raise ValueError(f"invalid duration: {text!r}") from None
        value = sum(float(n) * _DURATION_UNITS[u] for n, u in _DURATION_RE.findall(s))
    if value < 0:
        raise ValueError(f"negative duration: {text!r}")
    return value


def color_status(status_line: str, code: int, use_color: bool) -> str:
    if not use_color:
        return f"[{status_line}]"
    if 200 <= code < 300:
        return Fore.GREEN + f"[{status_line}]" + Style.RESET_ALL
    elif 300 <= code < 400:
        return Fore.YELLOW + f"[{status_line}]" + Style.RESET_ALL
    elif 400 <= code < 500:
        return Fore.RED + f"[{status_line}]" + Style.RESET_ALL
    elif 500 <= code < 600:
        return Fore.MAGENTA + f"[{status_line}]" + Style.RESET_ALL
    else:
        return f"[{status_line}]"


def _install_sigint_handler():
    def _handler(signum, frame):
        global SIGINT_COUNT
        SIGINT_COUNT += 1
        STOP_EVENT.set()
        if SIGINT_COUNT == 1:
            print("\n[!] Ctrl+C received — stopping new work and pending retries (press again to force quit).", file=sys.stderr)
        else:
            raise KeyboardInterrupt
    signal.signal(signal.SIGINT, _handler)


# ═══════════════════════════════════════════════════════════════
#  Output
# ═══════════════════════════════════════════════════════════════

class Reporter:
    """
    Serialized, timestamped output sink shared by every worker.

    Results go to ``out``; retry notices and run information go to ``log``.
    Lines are written with ``tqdm.write`` so an active progress bar is
    redrawn below them instead of being torn.
    """

    def __init__(self, out=None, log=None, *, color: bool = False):
        self.out = out if out is not None else sys.stdout
        self.log = log if log is not None else sys.stderr
        self.color = color
        self._lock = threading.Lock()

    def _emit(self, stream, text: str):
        line = f"{time.strftime(_TIMESTAMP_FORMAT)} {text}"
        with self._lock:
            tqdm.write(line, file=stream)

    def result(self, outcome: "Reported"):
        status = color_status(outcome.status_line, outcome.status, self.color)
        self._emit(self.out, outcome.describe(status))

    def retry(self, message: str):
        self._emit(self.log, message)

    def info(self, message: str):
        self._emit(self.log, message)

    def error(self, message: str):
        self._emit(self.log, message)


# ═══════════════════════════════════════════════════════════════
#  Candidate generation
# ═══════════════════════════════════════════════════════════════

def parse_suffixes(spec: str) -> List[str]:
    """Comma-separated suffixes -> unique, sorted list.  "" -> [""]."""
    return sorted(set(spec.split(",")))


def normalize_target(target: str) -> str:
    return target.rstrip("/") + "/"


def open_wordlist(path: str):
    if path == "-":
        # same lenient decoding as files
        return io.TextIOWrapper(sys.stdin.buffer, encoding="utf-8", errors="ignore")
    if path.lower().endswith(".gz"):
        return gzip.open(path, "rt", encoding="utf-8", errors="ignore")
    return open(path, "r", encoding="utf-8", errors="ignore")


def read_lines(stream) -> Iterator[str]:
    # Only the line ending goes; blank lines still probe base + suffix.
    for line in stream:
        yield line.rstrip("\r\n")


def generate_candidates(base: str, lines: Iterable[str], suffixes: List[str]) -> Iterator[str]:
    for line in lines:
        word = base + line
        for suffix in suffixes:
            yield word + suffix


def dispatch_candidates(channel: "DispatchChannel",
                        base: str,
                        lines: Iterable[str],
                        suffixes: List[str],
                        *,
                        reporter: Reporter,
                        stop_event: Optional[threading.Event] = None,
                        source: str = "wordlist") -> int:
    """
    Push every candidate URL onto ``channel``.  A read error from the
    wordlist is logged and ends generation early; URLs already on the
    channel are still probed.  Returns the number of URLs dispatched.
    """
    sent = 0
    try:
        for url in generate_candidates(base, lines, suffixes):
            if stop_event is not None and stop_event.is_set():
                break
            if not channel.put(url, stop_event=stop_event):
                break
            sent += 1
    except (OSError, UnicodeError) as e:
        reporter.error(f"Error reading wordlist {source}: {e}")
    return sent


# ═══════════════════════════════════════════════════════════════
#  Dispatch channel
# ═══════════════════════════════════════════════════════════════

_CLOSED = object()


class DispatchChannel:
    """
    Multi-consumer conduit of candidate URLs.  Iterating yields URLs until
    the channel has been closed and drained.  ``maxsize=0`` is unbounded.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: "queue.Queue" = queue.Queue(maxsize)
        self._closed = False

    def _offer(self, item, stop_event: Optional[threading.Event]) -> bool:
        while True:
            try:
                self._queue.put(item, timeout=_PUT_POLL_INTERVAL)
                return True
            except queue.Full:
                if stop_event is not None and stop_event.is_set():
                    return False

    def put(self, url: str, stop_event: Optional[threading.Event] = None) -> bool:
        """Blocks while the channel is full.  False if stopped while waiting."""
        if self._closed:
            raise ValueError("put on closed channel")
        return self._offer(url, stop_event)

    def close(self, stop_event: Optional[threading.Event] = None):
        if self._closed:
            return
        self._closed = True
        self._offer(_CLOSED, stop_event)

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[str]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                # pass the marker on so every other consumer wakes up too
                self._queue.put(_CLOSED)
                return
            yield item


# ═══════════════════════════════════════════════════════════════
#  Probe outcomes
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransientFailure:
    url: str
    cause: str


@dataclass(frozen=True)
class NotFound:
    url: str


@dataclass(frozen=True)
class Reported:
    url: str
    status: int
    reason: str
    final_url: str
    location: Optional[str] = None

    @property
    def status_line(self) -> str:
        return f"{self.status} {self.reason}".rstrip()

    @property
    def redirect_chain(self) -> Optional[str]:
        """Final request URL, if redirects moved us off the candidate."""
        return self.final_url if self.final_url and self.final_url != self.url else None

    def describe(self, status_text: Optional[str] = None) -> str:
        line = f"{status_text or '[' + self.status_line + ']'} {self.url}"
        if self.redirect_chain:
            line += f" -> {self.redirect_chain}"
        if self.location:
            line += f" (Location: {self.location})"
        return line


@dataclass(frozen=True)
class Redirected(Reported):
    """A 3xx was the terminal response."""


@dataclass(frozen=True)
class Cancelled:
    url: str


def _resolve_location(response: requests.Response, base: str) -> Optional[str]:
    location = response.headers.get("Location")
    if not location:
        return None
    try:
        return urljoin(base, location)
    except ValueError as e:
        return f"Error: {e}"


def classify_response(url: str, response: requests.Response):
    """Map a received response to NotFound, Redirected or Reported."""
    status = response.status_code
    if status == 404:
        return NotFound(url)
    final_url = response.url or url
    kind = Redirected if 300 <= status < 400 else Reported
    return kind(
        url=url,
        status=status,
        reason=response.reason or "",
        final_url=final_url,
        location=_resolve_location(response, final_url),
    )


# ═══════════════════════════════════════════════════════════════
#  Connection management
# ═══════════════════════════════════════════════════════════════

def _drain_and_close(response, max_bytes: int = _DRAIN_MAX_BYTES):
    """Drain a small response body so the underlying connection is returned to
    the pool for reuse."""
    try:
        cl = response.headers.get("Content-Length")
        if cl is not None and cl.isdigit() and int(cl) > max_bytes:
            return
        drained = 0
        for chunk in response.iter_content(chunk_size=16384):
            drained += len(chunk)
            if drained > max_bytes:
                return
    except (requests.RequestException, OSError):
        pass
    finally:
        response.close()


def _make_adapter(workers: int) -> HTTPAdapter:
    # No transport-level retries: the prober owns retrying.
    retries = Retry(total=0, read=False)
    pool = max(workers * 2, 16)
    return HTTPAdapter(
        pool_connections=pool,
        pool_maxsize=pool,
        max_retries=retries,
    )


def build_session(workers: int) -> requests.Session:
    session = requests.Session()
    session.trust_env = False
    session.max_redirects = _MAX_REDIRECTS
    adapter = _make_adapter(workers)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers["User-Agent"] = _DEFAULT_USER_AGENT
    return session


# ═══════════════════════════════════════════════════════════════
#  Prober
# ═══════════════════════════════════════════════════════════════

class RetryMemo:
    """Last retry notice shown for one candidate URL."""

    __slots__ = ("last",)

    def __init__(self):
        self.last: Optional[str] = None

    def fresh(self, message: str) -> bool:
        if message == self.last:
            return False
        self.last = message
        return True


class Prober:
    """
    Fetches one candidate URL until it reaches a terminal outcome.

    Transport errors are retried forever, ``retry_wait`` seconds apart.
    The wait is taken on ``stop_event``, so setting it ends the loop with
    ``Cancelled``.  404s end silently; every other status is reported.
    """

    def __init__(self,
                 session: requests.Session,
                 reporter: Reporter,
                 *,
                 retry_wait: float = 10.0,
                 log_retries: bool = True,
                 stop_event: Optional[threading.Event] = None,
                 timeout: Optional[float] = None,
                 follow_redirects: bool = True):
        self.session = session
        self.reporter = reporter
        self.retry_wait = retry_wait
        self.log_retries = log_retries
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.timeout = timeout
        self.follow_redirects = follow_redirects

    def attempt(self, url: str):
        # requests lets a plain ValueError out when a redirect target won't parse
        try:
            response = self.session.get(
                url,
                allow_redirects=self.follow_redirects,
                timeout=self.timeout,
                stream=True,
            )
        except (requests.RequestException, ValueError) as e:
            return TransientFailure(url, describe_error(e))
        try:
            return classify_response(url, response)
        finally:
            _drain_and_close(response)

    def probe(self, url: str):
        memo = RetryMemo()
        while True:
            if self.stop_event.is_set():
                return Cancelled(url)
            outcome = self.attempt(url)
            if isinstance(outcome, Reported):
                self.reporter.result(outcome)
                return outcome
            if isinstance(outcome, NotFound):
                return outcome

            notice = f"[Retry] {url} Retrying every {_fmt_duration(self.retry_wait)} ({outcome.cause})"
            if self.log_retries and memo.fresh(notice):
                self.reporter.retry(notice)
            if self.stop_event.wait(self.retry_wait):
                return Cancelled(url)


# ═══════════════════════════════════════════════════════════════
#  Worker pool
# ═══════════════════════════════════════════════════════════════

class ProgressCounter:
    """Number of candidate URLs that reached a terminal outcome."""

    def __init__(self, progress: Optional[tqdm] = None):
        self._lock = threading.Lock()
        self._value = 0
        self._progress = progress

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            if self._progress is not None:
                self._progress.update(1)
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class WorkerPool:
    """Fixed set of threads competing for URLs on one channel."""

    def __init__(self,
                 prober: Prober,
                 channel: DispatchChannel,
                 counter: ProgressCounter,
                 *,
                 workers: int = _DEFAULT_WORKERS):
        if workers < 1:
            raise ValueError("worker count must be >= 1")
        self.prober = prober
        self.channel = channel
        self.counter = counter
        self.workers = workers
        self._threads: List[threading.Thread] = []
        self._errors: List[BaseException] = []
        self._errors_lock = threading.Lock()

    def start(self):
        if self._threads:
            raise RuntimeError("pool already started")
        for i in range(self.workers):
            t = threading.Thread(target=self._work, name=f"httpbrute-worker-{i}", daemon=True)
            t.start()
            self._threads.append(t)

    def join(self):
        """Wait for every worker to exit; re-raise the first worker crash."""
        for t in self._threads:
            t.join()
        if self._errors:
            raise self._errors[0]

    def _work(self):
        try:
            for url in self.channel:
                outcome = self.prober.probe(url)
                if isinstance(outcome, Cancelled):
                    return
                self.counter.increment()
        except Exception as e:
            with self._errors_lock:
                self._errors.append(e)


# ═══════════════════════════════════════════════════════════════
#  Run driver
# ═══════════════════════════════════════════════════════════════

def run(*,
        target: str,
        suffixes: List[str],
        lines: Iterable[str],
        session: requests.Session,
        reporter: Reporter,
        workers: int = _DEFAULT_WORKERS,
        retry_wait: float = 10.0,
        log_retries: bool = True,
        stop_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
        follow_redirects: bool = True,
        show_progress: bool = False,
        source: str = "wordlist") -> int:
    """Probe every candidate and return how many reached a terminal outcome."""
    start = time.monotonic()
    if stop_event is None:
        stop_event = threading.Event()
    base = normalize_target(target)

    pbar = tqdm(desc="Probing", unit="url", disable=not show_progress, leave=False)
    counter = ProgressCounter(progress=pbar)
    prober = Prober(
        session,
        reporter,
        retry_wait=retry_wait,
        log_retries=log_retries,
        stop_event=stop_event,
        timeout=timeout,
        follow_redirects=follow_redirects,
    )
    channel = DispatchChannel()
    pool = WorkerPool(prober, channel, counter, workers=workers)
    pool.start()

    reporter.info(f"Target: {base}")
    reporter.info(f"Suffixes: {_fmt_suffixes(suffixes)}")

    try:
        dispatch_candidates(
            channel,
            base,
            lines,
            suffixes,
            reporter=reporter,
            stop_event=stop_event,
            source=source,
        )
    finally:
        channel.close(stop_event=stop_event)

    try:
        pool.join()
    finally:
        pbar.close()

    elapsed = time.monotonic() - start
    reporter.info(f"Tried {counter.value} URLs in {_fmt_duration(round(elapsed, 3))}")
    return counter.value


# ═══════════════════════════════════════════════════════════════
#  Entry point
# ═══════════════════════════════════════════════════════════════

def _fatal(message: str):
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Brute-force paths on the given target.  If a request fails with a "
            "connection error, timeout or empty reply it is repeated at intervals."
        )
    )
    parser.add_argument("-u", "--target", help="Target URL")
    parser.add_argument("-x", "--suffix", default="",
                        help="Optional comma-separated list of suffixes (e.g. .php,.txt,)")
    parser.add_argument("-w", "--wordlist", help="Wordlist file (optionally .gz), or - for stdin")
    parser.add_argument("-p", "--parallel", type=int, default=_DEFAULT_WORKERS,
                        help=f"Attempt N paths in parallel (default {_DEFAULT_WORKERS})")
    parser.add_argument("-W", "--timeout-wait", default=_DEFAULT_RETRY_WAIT,
                        help=f"Wait before retrying a failed request, e.g. 10s, 500ms, 1m (default {_DEFAULT_RETRY_WAIT})")
    parser.add_argument("-q", "--quiet-retries", action="store_true", help="Don't log when a URL is retried")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Connect/read timeout in seconds (default: none)")
    parser.add_argument("--no-redirects", action="store_true",
                        help="Don't follow redirects; report the 3xx and its Location")
    parser.add_argument("--no-color", action="store_true", help="Disable colored status codes")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    suffixes = parse_suffixes(args.suffix)

    if not args.target:
        _fatal("Please specify a target with -u/--target")
    if urlparse(args.target).scheme.lower() not in ("http", "https"):
        _fatal("Target must be a full URL starting with http:// or https://")
    if not args.wordlist:
        _fatal("Please specify a wordlist with -w/--wordlist")
    if args.parallel < 1:
        _fatal("--parallel must be >= 1")
    if args.timeout is not None and args.timeout <= 0:
        _fatal("--timeout must be > 0")
    try:
        retry_wait = parse_duration(args.timeout_wait)
    except ValueError as e:
        _fatal(f"Bad --timeout-wait: {e}")

    try:
        wordlist = open_wordlist(args.wordlist)
    except OSError as e:
        _fatal(f"Error opening wordlist file {args.wordlist}: {e}")

    _install_sigint_handler()

    reporter = Reporter(
        sys.stdout,
        sys.stderr,
        color=not args.no_color and sys.stdout.isatty(),
    )
    try:
        with build_session(args.parallel) as session:
            run(
                target=args.target,
                suffixes=suffixes,
                lines=read_lines(wordlist),
                session=session,
                reporter=reporter,
                workers=args.parallel,
                retry_wait=retry_wait,
                log_retries=not args.quiet_retries,
                stop_event=STOP_EVENT,
                timeout=args.timeout,
                follow_redirects=not args.no_redirects,
                show_progress=sys.stderr.isatty(),
                source=getattr(wordlist, "name", args.wordlist),
            )
    finally:
        if args.wordlist != "-":
            wordlist.close()
    return 0


def cli():
    colorama_init()
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        STOP_EVENT.set()
        print("\nInterrupted by user.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    cli()
