"""
sysdef errors.

Every error carries a human message plus optional location, structured
details and a suggestion, and renders them together with
``format_error()``::

    ❌ UnknownSystemError: Unknown system 'dmeo'
       Details:
       - name: dmeo
       💡 Suggestion: Check the system name, ...
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class ErrorSpan:
    """Where in a manifest (or source file) an error points."""

    file: str
    line: Optional[int] = None
    column: Optional[int] = None
    snippet: Optional[str] = None

    def __str__(self) -> str:
        if self.line is None:
            return self.file
        if self.column is None:
            return f"{self.file}:{self.line}"
        return f"{self.file}:{self.line}:{self.column}"


class SysdefError(Exception):
    """Root of the sysdef error hierarchy."""

    def __init__(
        self,
        message: str,
        *,
        span: Optional[ErrorSpan] = None,
        suggestion: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.span = span
        self.suggestion = suggestion
        self.details = dict(details or {})

    def format_error(self) -> str:
        """Multi-line diagnostic: header, location, details, suggestion."""
        out = [f"❌ {type(self).__name__}: {self.message}"]

        if self.span is not None:
            out.append(f"   at {self.span}")
            if self.span.snippet:
                out.extend(["", f"   {self.span.snippet}"])

        if self.details:
            out.extend(["", "   Details:"])
            out.extend(f"   - {key}: {value}" for key, value in self.details.items())

        if self.suggestion:
            out.extend(["", f"   💡 Suggestion: {self.suggestion}"])

        return "\n".join(out)

    def __str__(self) -> str:
        return self.format_error()


class UnknownSystemError(SysdefError):
    """Lookup of a name nobody registered. ``name`` is kept as passed."""

    def __init__(self, name: str, *, span: Optional[ErrorSpan] = None):
        self.name = name
        super().__init__(
            f"Unknown system '{name}'",
            span=span,
            suggestion=(
                "Check the system name, or make sure the manifest declaring "
                "it lives under one of the configured roots."
            ),
            details={"name": name},
        )


class MalformedComponentFormError(SysdefError):
    """
    A component form matches none of the accepted shapes::

        "name.ext"
        ("name.ext",)
        ("name.ext", {"generator": ("namespace", "function", [args])})
        ("group", [form, ...])
    """

    def __init__(self, form: Any, reason: str = "", *, span: Optional[ErrorSpan] = None):
        self.form = form
        self.reason = reason
        suffix = f" ({reason})" if reason else ""
        super().__init__(
            f"Malformed component form: {form!r}{suffix}",
            span=span,
            suggestion=(
                "Use a bare file name, (name, {\"generator\": ...}) for a "
                "generated file, or (name, [children]) for a group."
            ),
            details={"form": repr(form)},
        )


class GeneratorNotFoundError(SysdefError):
    """A generator descriptor names a function that was never registered."""

    def __init__(self, namespace: str, function: str, *, span: Optional[ErrorSpan] = None):
        self.namespace = namespace
        self.function = function
        super().__init__(
            f"Generator '{function}' not found in namespace '{namespace}'",
            span=span,
            suggestion=(
                "Register the generator before loading, e.g. "
                f"generators.register({namespace!r}, {function!r}, func)."
            ),
            details={"namespace": namespace, "function": function},
        )


class CompilationFailureError(SysdefError):
    """
    The compiler rejected a source file.

    ``diagnostic`` is the compiler's own output, untouched.
    """

    def __init__(self, source_path: str, diagnostic: str, *, span: Optional[ErrorSpan] = None):
        self.source_path = str(source_path)
        self.diagnostic = diagnostic
        super().__init__(
            f"Compilation failed for {self.source_path}:\n{diagnostic}",
            span=span or ErrorSpan(file=self.source_path),
            details={"source": self.source_path},
        )


class DependencyCycleError(SysdefError):
    """
    Systems depend on each other in a loop, e.g. app -> lib -> app.

    ``cycle`` lists each system on the loop once, in traversal order.
    """

    def __init__(self, cycle: List[str], *, span: Optional[ErrorSpan] = None):
        self.cycle = list(cycle)
        path = " → ".join(self.cycle + self.cycle[:1])
        super().__init__(
            f"Circular dependency detected: {path}",
            span=span,
            suggestion=(
                "Break the cycle by removing one dependency or by moving the "
                "shared components into a separate system."
            ),
            details={"cycle": self.cycle, "cycle_length": len(self.cycle)},
        )


class ManifestValidationError(SysdefError):
    """A system declaration has missing or ill-typed fields."""

    def __init__(
        self,
        manifest_name: str,
        validation_errors: List[str],
        *,
        span: Optional[ErrorSpan] = None,
    ):
        self.manifest_name = manifest_name
        self.validation_errors = list(validation_errors)
        listing = "\n".join(f"   - {problem}" for problem in self.validation_errors)
        super().__init__(
            f"Manifest '{manifest_name}' validation failed:\n{listing}",
            span=span,
            suggestion=(
                "Ensure every system has a name and that depends_on, authors "
                "and licenses are lists of strings."
            ),
            details={"manifest": manifest_name, "error_count": len(self.validation_errors)},
        )


class ConfigError(SysdefError):
    """Configuration could not be read or holds an invalid value."""
