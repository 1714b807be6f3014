"""
Consolidator configuration
"""

# GitHub API settings
GITHUB_API_BASE = "https://api.github.com"
GITHUB_WEB_BASE = "https://github.com"
USER_AGENT = "antigravity-skills-consolidator"
TOKEN_ENV_VAR = "GITHUB_TOKEN"

SKILL_FILENAME = "SKILL.md"

# Well-known repos that contain SKILL.md-format agent skills
KNOWN_SKILL_REPOS = [
    "wshobson/agents",
    "rmyndharis/antigravity-skills",
]

# Repository search queries, rotated through during a slow walk
REPO_SEARCH_QUERIES = [
    "agent skills SKILL.md",
    "ai agent skills topic:ai",
    "claude code agents skills",
    "coding agent skills SKILL",
    "ai coding assistant skills",
    "llm agent tools skills",
    "gemini agent skills",
    "ai assistant workflow skills",
    "developer agent automation skills",
    "code agent prompt skills",
]

# Code search only works with a token
CODE_SEARCH_QUERIES = [
    "filename:SKILL.md path:skills",
    'filename:SKILL.md "description:"',
]

# Retry policy
MAX_RETRIES = 2
SERVER_ERROR_BACKOFF = 2.0  # seconds, multiplied by attempt number
LOW_RATE_LIMIT_WARNING = 10
REQUEST_TIMEOUT = 30

# Pacing between logical requests (seconds)
# Unauthenticated: 10 search requests/min, 60 other requests/hr
# Authenticated: 30 search requests/min, 5000 other requests/hr
AUTH_SEARCH_DELAY = 2.2
AUTH_REQUEST_DELAY = 0.8
ANON_SEARCH_DELAY = 6.5
ANON_REQUEST_DELAY = 2.0

# Slow walk
SEARCH_PAGE_SIZE = 10
MAX_SEARCH_PAGES = 5
PAGE_CYCLE_PAUSE = 60
SEARCH_FAILURE_COOLDOWN = 30
CODE_SEARCH_PAGE_SIZE = 30

# Crawl and inventory defaults
DEFAULT_LIMIT = 30
DEFAULT_INVENTORY_LIMIT = 20
DEFAULT_QUERY = "filename:SKILL.md path:skills"
MAX_CHECK_HISTORY = 20

# Output paths
REPO_CATALOG_FILE = "repo-catalog.json"
SKILL_CATALOG_FILE = "catalog.json"
INVENTORY_JSON_FILE = "discovered-skills.json"
INVENTORY_MD_FILE = "DISCOVERED.md"

# Tiers, highest first, with the minimum score for each
TIERS = [
    ("★★★", 75),
    ("★★", 50),
    ("★", 25),
    ("⬡", 0),
]

TIER_LABELS = {
    "★★★": "★★★ Excellent (75+)",
    "★★": "★★ Good (50–74)",
    "★": "★ Fair (25–49)",
    "⬡": "⬡ Low (<25)",
}

DEFAULT_CATEGORY = "general"

# Ordered: the first rule with a matching keyword wins
CATEGORY_RULES = [
    ("security", [
        "security", "sast", "compliance", "privacy", "threat", "vulnerability", "owasp", "pci", "gdpr",
        "secrets", "risk", "malware", "forensics", "attack", "incident", "auth", "mtls", "zero", "trust",
    ]),
    ("infrastructure", [
        "kubernetes", "k8s", "helm", "terraform", "cloud", "network", "devops", "gitops", "prometheus",
        "grafana", "observability", "monitoring", "logging", "tracing", "deployment", "istio", "linkerd",
        "service", "mesh", "slo", "sre", "oncall", "incident", "pipeline", "cicd", "ci", "cd", "kafka",
    ]),
    ("data-ai", [
        "data", "database", "db", "sql", "postgres", "mysql", "analytics", "etl", "warehouse", "dbt",
        "ml", "ai", "llm", "rag", "vector", "embedding", "spark", "airflow", "cdc", "pipeline",
    ]),
    ("development", [
        "python", "javascript", "typescript", "java", "golang", "go", "rust", "csharp", "dotnet", "php",
        "ruby", "node", "react", "frontend", "backend", "mobile", "ios", "android", "flutter", "fastapi",
        "django", "nextjs", "vue", "api",
    ]),
    ("architecture", [
        "architecture", "c4", "microservices", "event", "cqrs", "saga", "domain", "ddd", "patterns",
        "decision", "adr",
    ]),
    ("testing", ["testing", "tdd", "unit", "e2e", "qa", "test"]),
    ("business", [
        "business", "market", "sales", "finance", "startup", "legal", "hr", "product", "customer", "seo",
        "marketing", "kpi", "contract", "employment",
    ]),
    ("workflow", ["workflow", "orchestration", "conductor", "automation", "process", "collaboration"]),
]
