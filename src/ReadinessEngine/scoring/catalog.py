"""Built-in production readiness categories."""

from __future__ import annotations

from .models import TestCategory, TestDefinition, TestKind


def _check(
    test_id: str,
    name: str,
    description: str,
    duration: int,
    criteria: str,
    tags: tuple[str, ...],
    *,
    kind: TestKind = TestKind.AUTOMATED,
    dependencies: tuple[str, ...] = (),
) -> TestDefinition:
    return TestDefinition(
        id=test_id,
        name=name,
        description=description,
        kind=kind,
        estimated_duration=duration,
        success_criteria=criteria,
        dependencies=frozenset(dependencies),
        tags=frozenset(tags),
    )


SECURITY = TestCategory(
    id="security",
    name="Security",
    description="Authentication, authorization, encryption, and vulnerability testing",
    weight=25,
    critical_path=True,
    tests=(
        _check(
            "auth-authorization",
            "Authentication & Authorization Test",
            "Simulate login attempts, role escalations, and MFA bypasses",
            300,
            "100% unauthorized attempts blocked; no session hijacking",
            ("auth", "security", "mfa"),
        ),
        _check(
            "data-encryption",
            "Data Encryption Test",
            "Verify data in transit/rest with packet analysis",
            180,
            "All sensitive data encrypted (AES-256); decryption fails without keys",
            ("encryption", "data-protection"),
        ),
        _check(
            "input-validation",
            "Input Validation Test",
            "Fuzz inputs for SQL injection/XSS vulnerabilities",
            240,
            "0 exploits detected; all inputs sanitized",
            ("injection", "xss", "input-validation"),
        ),
        _check(
            "access-logging",
            "Access Logging Test",
            "Review logs for completeness during user sessions",
            120,
            "100% of actions logged with timestamps; logs tamper-proof",
            ("logging", "audit-trail"),
            dependencies=("auth-authorization",),
        ),
        _check(
            "vulnerability-scanning",
            "Vulnerability Scanning Test",
            "Run full dependency and OWASP security scans",
            600,
            "No high/critical vulnerabilities; all medium/low justified",
            ("vulnerability", "scanning", "dependencies"),
        ),
    ),
)

PERFORMANCE = TestCategory(
    id="performance",
    name="Scalability & Performance",
    description="Load testing, caching, optimization, and scalability validation",
    weight=20,
    critical_path=True,
    tests=(
        _check(
            "horizontal-scaling",
            "Horizontal Scaling Test",
            "Ramp user load to 10x expected traffic",
            900,
            "Auto-scales seamlessly; error rate <5%; response <500ms",
            ("scaling", "load-testing", "auto-scaling"),
        ),
        _check(
            "caching-optimization",
            "Caching & Optimization Test",
            "Measure response times before/after caching",
            300,
            "Average latency <200ms; cache hit rate >80%",
            ("caching", "optimization"),
        ),
        _check(
            "load-balancing",
            "Load Balancing Test",
            "Distribute simulated traffic across nodes",
            180,
            "Even distribution (variance <10%); no single point failure",
            ("load-balancing", "distribution"),
            dependencies=("horizontal-scaling",),
        ),
        _check(
            "database-optimization",
            "Database Optimization Test",
            "Execute high-volume queries and analyze performance",
            240,
            "No queries >100ms; indexing covers 95% operations",
            ("database", "queries", "optimization"),
        ),
        _check(
            "api-rate-limiting",
            "API Rate Limiting Test",
            "Send burst requests exceeding limits",
            120,
            "Throttling activates correctly; CPU <80%",
            ("rate-limiting", "api", "throttling"),
        ),
    ),
)

RELIABILITY = TestCategory(
    id="reliability",
    name="Reliability & Availability",
    description="Failover, error handling, disaster recovery, and uptime validation",
    weight=20,
    critical_path=True,
    tests=(
        _check(
            "redundancy-failover",
            "Redundancy & Failover Test",
            "Induce failures and monitor recovery",
            600,
            "Uptime >99.99% during tests; failover <1 minute",
            ("failover", "redundancy", "chaos-engineering"),
        ),
        _check(
            "error-handling",
            "Error Handling Test",
            "Inject exceptions in code paths",
            180,
            "100% errors caught with graceful degradation",
            ("error-handling", "exceptions", "graceful-degradation"),
        ),
        _check(
            "disaster-recovery",
            "Disaster Recovery Test",
            "Simulate data loss and restore from backups",
            1800,
            "RTO <4 hours; RPO <1 hour; 100% data integrity",
            ("disaster-recovery", "backup", "restore"),
            kind=TestKind.HYBRID,
            dependencies=("redundancy-failover",),
        ),
        _check(
            "circuit-breakers",
            "Circuit Breakers Test",
            "Trigger failures in dependent services",
            240,
            "Isolates issues; no cascade failures; recovery <30s",
            ("circuit-breaker", "isolation", "recovery"),
        ),
        _check(
            "health-checks",
            "Health Checks Test",
            "Monitor endpoints continuously",
            300,
            ">99.99% availability; alerts on >1% downtime",
            ("health-checks", "monitoring", "availability"),
        ),
    ),
)

COMPLIANCE = TestCategory(
    id="compliance",
    name="Compliance & Legal",
    description="GDPR, accessibility, audit documentation, and regulatory compliance",
    weight=15,
    critical_path=True,
    tests=(
        _check(
            "data-privacy",
            "Data Privacy Test",
            "Validate GDPR consent flows and user rights",
            300,
            "100% compliance; data export <1 minute",
            ("gdpr", "privacy", "consent"),
        ),
        _check(
            "accessibility",
            "Accessibility Test",
            "Audit UI for WCAG 2.1 AA compliance",
            240,
            "0 critical errors; AA level achieved",
            ("wcag", "accessibility", "a11y"),
        ),
        _check(
            "audit-documentation",
            "Audit Documentation Test",
            "Generate and review compliance reports",
            600,
            "100% coverage; no gaps in data flows",
            ("audit", "documentation", "soc2"),
            kind=TestKind.MANUAL,
        ),
        _check(
            "third-party-compliance",
            "Third-Party Compliance Test",
            "Check integrations for certifications",
            180,
            "All vendors compliant; no security risks",
            ("vendor", "third-party", "compliance"),
        ),
        _check(
            "penetration-testing",
            "Penetration Testing Test",
            "Conduct ethical hacks by certified testers",
            3600,
            "All findings remediated; clean report",
            ("penetration", "ethical-hacking", "security"),
            kind=TestKind.MANUAL,
        ),
    ),
)

UX = TestCategory(
    id="ux",
    name="Usability & User Experience",
    description="Responsive design, onboarding, internationalization, and user analytics",
    weight=10,
    critical_path=False,
    tests=(
        _check(
            "responsive-design",
            "Responsive Design Test",
            "Test across devices and browsers",
            300,
            "100% compatibility; no layout breaks",
            ("responsive", "cross-browser", "mobile"),
        ),
        _check(
            "user-onboarding",
            "User Onboarding Test",
            "Run A/B tests on onboarding flows",
            240,
            "Completion rate >90%; average time <2 minutes",
            ("onboarding", "a-b-testing", "conversion"),
        ),
        _check(
            "internationalization",
            "Internationalization Test",
            "Verify locales, translations, and RTL support",
            180,
            "100% accurate rendering; no cultural issues",
            ("i18n", "localization", "rtl"),
        ),
        _check(
            "performance-metrics",
            "Performance Metrics Test",
            "Score Core Web Vitals with Lighthouse",
            120,
            "All metrics >90 (LCP <2.5s, FID <100ms)",
            ("core-web-vitals", "lighthouse", "performance"),
        ),
        _check(
            "user-analytics",
            "User Analytics Test",
            "Simulate sessions and track engagement",
            180,
            "Churn rate <10%; session length above benchmark",
            ("analytics", "engagement", "tracking"),
        ),
    ),
)

DEVOPS = TestCategory(
    id="devops",
    name="Maintainability & DevOps",
    description="CI/CD, code quality, documentation, and environment management",
    weight=5,
    critical_path=False,
    tests=(
        _check(
            "cicd-pipeline",
            "Version Control & CI/CD Test",
            "Run full pipelines on changes",
            300,
            "100% build/deploy success; deployment <5 minutes",
            ("cicd", "pipeline", "deployment"),
        ),
        _check(
            "modular-architecture",
            "Modular Architecture Test",
            "Check dependencies for couplings",
            120,
            "Modules independent; updates affect <5% of app",
            ("architecture", "modularity", "coupling"),
        ),
        _check(
            "code-quality",
            "Code Quality Test",
            "Lint and test coverage analysis",
            180,
            ">80% coverage; 0 lint errors; code smells <5%",
            ("code-quality", "coverage", "linting"),
        ),
        _check(
            "documentation",
            "Documentation Test",
            "Validate API docs against specs",
            120,
            "100% endpoints documented; no validation errors",
            ("documentation", "api-docs", "swagger"),
        ),
        _check(
            "environment-management",
            "Environment Management Test",
            "Compare dev/staging/prod configs",
            90,
            "100% parity; no drifts in secrets",
            ("environment", "config", "parity"),
        ),
    ),
)

DATA = TestCategory(
    id="data",
    name="Data Management",
    description="Data integrity, backup validation, query optimization, and governance",
    weight=3,
    critical_path=False,
    tests=(
        _check(
            "data-integrity",
            "Data Integrity Test",
            "Run ACID-compliant transactions under load",
            240,
            "0 inconsistencies; all commits/rollbacks expected",
            ("acid", "integrity", "transactions"),
        ),
        _check(
            "backup-archiving",
            "Backup & Archiving Test",
            "Perform and verify restores",
            300,
            "100% recovery; backups meet retention policies",
            ("backup", "archiving", "restore"),
        ),
        _check(
            "query-optimization",
            "Query Optimization Test",
            "Benchmark under simulated production data",
            180,
            "Efficient scaling; costs < budgeted thresholds",
            ("queries", "optimization", "performance"),
        ),
        _check(
            "data-governance",
            "Data Governance Test",
            "Test access policies for PII",
            120,
            "No unauthorized exposures; 100% tagging accuracy",
            ("governance", "pii", "access-control"),
        ),
    ),
)

INTEGRATION = TestCategory(
    id="integration",
    name="Integration & Extensibility",
    description="API standards, webhooks, plugin ecosystem, and SLA monitoring",
    weight=2,
    critical_path=False,
    tests=(
        _check(
            "api-standards",
            "API Standards Test",
            "Validate contracts with OpenAPI specs",
            180,
            "100% compliance with OpenAPI specs",
            ("api", "openapi", "contracts"),
        ),
        _check(
            "webhook-events",
            "Webhook & Event-Driven Test",
            "End-to-end sync simulations",
            240,
            "100% event delivery; latency <1 second",
            ("webhooks", "events", "real-time"),
        ),
        _check(
            "plugin-ecosystem",
            "Plugin Ecosystem Test",
            "Install and test extensions",
            300,
            "No compatibility issues; seamless integration",
            ("plugins", "extensions", "ecosystem"),
        ),
        _check(
            "sla-monitoring",
            "SLA Monitoring Test",
            "Track uptime over extended periods",
            600,
            "Meets 99.99% commitment; no breaches",
            ("sla", "monitoring", "uptime"),
        ),
    ),
)

DEFAULT_CATEGORIES: tuple[TestCategory, ...] = (
    SECURITY,
    PERFORMANCE,
    RELIABILITY,
    COMPLIANCE,
    UX,
    DEVOPS,
    DATA,
    INTEGRATION,
)

__all__ = ["DEFAULT_CATEGORIES"]
