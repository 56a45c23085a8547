"""
Main checking engine for the style scanner.

This module orchestrates a run, coordinating between the tokenizer,
the rules, suppression handling and the fix applier.
"""

import fnmatch
import logging
import os
import time
from pathlib import Path
from typing import List, Dict, Any, Optional, Set, Generator, Sequence, Tuple, Union
from concurrent.futures import ThreadPoolExecutor, as_completed

from stylescanner.config import LintConfig, RULE_PRESETS, get_preset_rules, load_lint_config
from stylescanner.core.findings import Finding, Report, Severity, sort_findings
from stylescanner.core.rules import Rule, AnalysisContext, registry
from stylescanner.parsers.tokenizer import tokenize
from stylescanner.parsers.tokens import Token
from stylescanner.remediation.engine import RemediationEngine, FixResult
from stylescanner.utils import is_binary_file

# Import rules to register them with the registry
import stylescanner.rules  # noqa: F401


logger = logging.getLogger(__name__)


class InputError(Exception):
    """Raised for input that cannot be checked at all: empty or unreadable."""


def run_rules(
    context: AnalysisContext,
    rules: Sequence[Rule],
    max_workers: int = 1,
) -> Tuple[List[Finding], List[str]]:
    """
    Run ``rules`` over one file.

    Rules share nothing but the read-only context, so with ``max_workers``
    above one they run in threads. A failing rule is logged and reported
    in the returned error list; the other rules still run. Findings come
    back in report order either way.
    """
    def run(rule: Rule) -> List[Finding]:
        return list(rule.analyze(context))

    findings: List[Finding] = []
    errors: List[str] = []

    def record_failure(rule: Rule, e: Exception):
        message = f"Error running rule {rule.rule_id} on {context.file_path}: {e}"
        logger.error(message)
        logger.debug("Rule failure details", exc_info=True)
        errors.append(message)

    if max_workers > 1 and len(rules) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [(rule, executor.submit(run, rule)) for rule in rules]
            for rule, future in futures:
                try:
                    findings.extend(future.result())
                except Exception as e:
                    record_failure(rule, e)
    else:
        for rule in rules:
            try:
                findings.extend(run(rule))
            except Exception as e:
                record_failure(rule, e)

    return sort_findings(findings), errors


def evaluate(
    tokens: Sequence[Token],
    rules: Sequence[Rule],
    file_path: str = "<input>",
    lookahead: int = 3,
    terminator: str = ";",
    max_workers: int = 1,
) -> List[Finding]:
    """
    Evaluate ``rules`` against a token stream and return sorted findings.
    """
    context = AnalysisContext.from_tokens(
        tokens, file_path=file_path, lookahead=lookahead, terminator=terminator
    )
    findings, _ = run_rules(context, rules, max_workers)
    return findings


class StyleEngine:
    """
    Main engine that orchestrates a style check.

    The engine:
    1. Discovers files in the target directory
    2. Tokenizes each file and builds its structure view
    3. Runs the configured rules on each file
    4. Applies inline suppressions and the severity threshold
    5. Optionally applies fixes and writes the files back
    """

    def __init__(self, config: Optional[LintConfig] = None):
        self.config = config or LintConfig()
        self.registry = registry
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self._autofix_rules: Set[str] = set()

        self.severity_threshold = self._parse_severity(
            self.config.severity_threshold, "severity_threshold"
        ) or Severity.INFO
        self.rules: List[Rule] = self._configure_rules()
        self.remediation = RemediationEngine(dry_run=self.config.dry_run, backup=self.config.backup)

    def _warn(self, message: str):
        logger.warning(message)
        self.warnings.append(message)

    def _parse_severity(self, value: Any, setting: str) -> Optional[Severity]:
        try:
            return Severity(str(value).lower())
        except ValueError:
            self._warn(f"Invalid severity '{value}' for {setting}; ignoring it")
            return None

    def _configure_rules(self) -> List[Rule]:
        """Instantiate the enabled rules with their configured options."""
        if self.config.rule_preset not in RULE_PRESETS:
            self._warn(f"Unknown rule preset '{self.config.rule_preset}'; using 'standard'")
        preset = get_preset_rules(self.config.rule_preset)

        for rule_id in self.config.rules:
            if rule_id not in self.registry:
                self._warn(f"Unknown rule id in configuration: '{rule_id}'")

        rules: List[Rule] = []
        for metadata in self.registry.all_metadata():
            rule_id = metadata.rule_id
            enabled = metadata.enabled_by_default
            if any(fnmatch.fnmatch(rule_id, pattern) for pattern in preset["enabled"]):
                enabled = True
            if any(fnmatch.fnmatch(rule_id, pattern) for pattern in preset["disabled"]):
                enabled = False

            rule_config = self.config.rule_config(rule_id)
            if rule_config.enabled is not None:
                enabled = bool(rule_config.enabled)
            if not enabled:
                continue

            severity = None
            if rule_config.severity is not None:
                severity = self._parse_severity(rule_config.severity, f"rule '{rule_id}'")
            rules.append(self.registry.create(rule_id, rule_config.options, severity))

            if rule_config.autofix:
                self._autofix_rules.add(rule_id)

        logger.debug("Enabled rules: %s", ", ".join(r.rule_id for r in rules))
        return rules

    @property
    def rule_ids(self) -> List[str]:
        return [r.rule_id for r in self.rules]

    def should_ignore(self, file_path: str, base_path: str) -> bool:
        """Check if a file should be ignored based on patterns."""
        rel_path = os.path.relpath(file_path, base_path).replace(os.sep, "/")
        name = os.path.basename(file_path)

        for pattern in self.config.exclude_patterns:
            if fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(name, pattern):
                return True

        return False

    def should_ignore_dir(self, dir_path: str, base_path: str) -> bool:
        """Directory patterns such as ``build/**`` match the directory itself."""
        rel_path = os.path.relpath(dir_path, base_path).replace(os.sep, "/") + "/"
        name = os.path.basename(dir_path) + "/"
        return any(
            fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(name, pattern)
            for pattern in self.config.exclude_patterns
        )

    def is_included(self, file_path: str, base_path: str) -> bool:
        if not self.config.include_patterns:
            return True
        rel_path = os.path.relpath(file_path, base_path).replace(os.sep, "/")
        name = os.path.basename(file_path)
        return any(
            fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(name, pattern)
            for pattern in self.config.include_patterns
        )

    def discover_files(self, target_path: str) -> Generator[str, None, None]:
        """Discover all files to check in the target path."""
        target = Path(target_path)

        if target.is_file():
            yield str(target)
            return

        extensions = {ext.lower() for ext in self.config.extensions}
        for root, dirs, files in os.walk(target):
            # Filter out ignored directories
            dirs[:] = sorted(
                d for d in dirs
                if not self.should_ignore_dir(os.path.join(root, d), target_path)
            )

            for file in sorted(files):
                file_path = os.path.join(root, file)

                if os.path.splitext(file)[1].lower() not in extensions:
                    continue
                if self.should_ignore(file_path, target_path) or not self.is_included(file_path, target_path):
                    continue

                try:
                    if os.path.getsize(file_path) > self.config.max_file_size:
                        logger.debug("Skipping %s: larger than max_file_size", file_path)
                        continue
                except OSError:
                    continue
                if is_binary_file(file_path):
                    logger.debug("Skipping binary file %s", file_path)
                    continue

                yield file_path

    def read_file(self, file_path: str) -> str:
        """
        Read a file's contents.

        Undecodable bytes are kept as surrogates so fixed files can be
        written back byte for byte.
        """
        try:
            with open(file_path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise InputError(f"Error reading {file_path}: {e}") from e
        return data.decode("utf-8", errors="surrogateescape")

    def _analyze(self, content: Union[str, bytes], file_path: str) -> Tuple[List[Finding], List[str]]:
        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="surrogateescape")
        if not content:
            raise InputError(f"{file_path}: input is empty")

        tokens = tokenize(content)
        context = AnalysisContext(
            file_path=file_path,
            content=content,
            tokens=tokens,
            lookahead=self.config.lookahead,
            terminator=self.config.terminator,
            context_lines=self.config.output.context_lines,
        )
        findings, errors = run_rules(context, self.rules, self.config.rule_workers)

        results: List[Finding] = []
        for finding in findings:
            if finding.severity < self.severity_threshold:
                continue
            if context.is_suppressed(finding):
                finding = finding.evolve(suppressed=True, suppression_reason="Inline suppression comment")
            results.append(finding)
        return results, errors

    def check_content(self, content: Union[str, bytes], file_path: str = "<input>") -> List[Finding]:
        """
        Check source text directly without reading from a file.

        Raises:
            InputError: If the content is empty.
        """
        findings, errors = self._analyze(content, file_path)
        self.errors.extend(errors)
        return findings

    def fixable(self, findings: Sequence[Finding]) -> List[Finding]:
        """The findings whose fixes may be applied under the configuration."""
        return [
            f for f in findings
            if f.fix is not None and not f.suppressed and f.rule_id in self._autofix_rules
        ]

    def fix_content(self, content: str, file_path: str = "<input>") -> Tuple[FixResult, List[Finding]]:
        """
        Check ``content`` and apply the fixes of its auto-fixable findings.

        Returns the fix result and the findings the fixes were taken from.
        """
        findings = self.check_content(content, file_path)
        result = self.remediation.fix_text(content, self.fixable(findings), file_path)
        return result, findings

    def check_file(self, file_path: str) -> List[Finding]:
        """Check a single file and return findings."""
        findings, errors = self._check_path(file_path)
        self.errors.extend(errors)
        return findings

    def _check_path(self, file_path: str) -> Tuple[List[Finding], List[str]]:
        logger.debug("Checking %s", file_path)
        return self._analyze(self.read_file(file_path), file_path)

    def _fix_path(self, file_path: str) -> Tuple[List[Finding], List[str], FixResult]:
        logger.debug("Fixing %s", file_path)
        content = self.read_file(file_path)
        findings, errors = self._analyze(content, file_path)
        result = self.remediation.fix_text(content, self.fixable(findings), file_path)
        self.remediation.write(result)
        if result.error_message:
            errors.append(result.error_message)

        if result.changed:
            # Report what is left in the fixed text.
            findings, more_errors = self._analyze(result.text, file_path)
            errors.extend(more_errors)
        return findings + result.skipped, errors, result

    def _run_batch(self, files: List[str], worker) -> Dict[str, Any]:
        """Run ``worker`` on each file, in threads when there are several."""
        outcomes: Dict[str, Any] = {}

        def guarded(file_path: str):
            try:
                return worker(file_path)
            except InputError as e:
                logger.error(str(e))
                return e
            except Exception as e:
                logger.exception("Unexpected error processing %s", file_path)
                return InputError(f"Error processing {file_path}: {type(e).__name__}: {e}")

        if len(files) > 1 and self.config.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                futures = {executor.submit(guarded, f): f for f in files}
                for future in as_completed(futures):
                    outcomes[futures[future]] = future.result()
        else:
            for file_path in files:
                outcomes[file_path] = guarded(file_path)

        return outcomes

    def _collect(self, files: List[str], outcomes: Dict[str, Any]) -> Tuple[List[Finding], int]:
        findings: List[Finding] = []
        files_checked = 0
        # File order, not completion order, keeps errors deterministic.
        for file_path in files:
            outcome = outcomes[file_path]
            if isinstance(outcome, InputError):
                self.errors.append(str(outcome))
                continue
            findings.extend(outcome[0])
            self.errors.extend(outcome[1])
            files_checked += 1
        return findings, files_checked

    def _files_for(self, target_path: str) -> List[str]:
        if not os.path.exists(target_path):
            message = f"Target not found: {target_path}"
            logger.error(message)
            self.errors.append(message)
            return []
        return list(self.discover_files(target_path))

    def check(self, target_path: str) -> Report:
        """
        Check a target path and return results.

        Args:
            target_path: Path to a file or directory to check.

        Returns:
            Report containing all findings and run metadata.
        """
        start_time = time.time()
        files = self._files_for(target_path)
        outcomes = self._run_batch(files, self._check_path)
        findings, files_checked = self._collect(files, outcomes)

        return Report.from_findings(
            findings,
            files_checked=files_checked,
            elapsed_seconds=round(time.time() - start_time, 3),
            rules_applied=self.rule_ids,
            errors=self.errors,
            warnings=self.warnings,
        )

    def fix(self, target_path: str) -> Tuple[Report, List[FixResult]]:
        """
        Fix every file under a target path.

        Returns a report of what remains after fixing, including a
        ``fix-skipped`` finding for each conflicting fix, and the
        per-file fix results.
        """
        start_time = time.time()
        files = self._files_for(target_path)
        outcomes = self._run_batch(files, self._fix_path)
        findings, files_checked = self._collect(files, outcomes)
        results = [
            outcomes[f][2] for f in files
            if not isinstance(outcomes[f], InputError)
        ]

        report = Report.from_findings(
            findings,
            files_checked=files_checked,
            elapsed_seconds=round(time.time() - start_time, 3),
            rules_applied=self.rule_ids,
            errors=self.errors,
            warnings=self.warnings,
            fixes_applied=sum(r.applied_count for r in results),
            fixes_skipped=sum(r.skipped_count for r in results),
        )
        return report, results


def create_engine(config_path: Optional[str] = None, **kwargs) -> StyleEngine:
    """
    Create a style engine with configuration.

    Args:
        config_path: Optional path to a configuration file.
        **kwargs: Additional configuration options.

    Returns:
        Configured StyleEngine instance.
    """
    if config_path:
        config = load_lint_config(config_path)
    else:
        config = LintConfig()

    for key, value in kwargs.items():
        if not hasattr(config, key):
            raise TypeError(f"Unknown configuration option: {key}")
        setattr(config, key, value)

    return StyleEngine(config)
