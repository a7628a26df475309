"""Word lists shared by the bundled heuristic analyzers."""

POSITIVE_WORDS = frozenset({
    "amazing", "awesome", "benefit", "benefits", "beneficial", "best", "better",
    "brilliant", "clear", "confident", "delighted", "effective", "efficient",
    "excellent", "excited", "fantastic", "good", "great", "greatly", "growth",
    "happy", "helpful", "improve", "improvement", "innovative", "love",
    "outstanding", "pleased", "positive", "profitable", "promising", "reliable",
    "secure", "solid", "strong", "success", "successful", "support", "supports",
    "thrilled", "transparent", "trust", "valuable", "win", "wonderful",
})

NEGATIVE_WORDS = frozenset({
    "angry", "awful", "bad", "broken", "concern", "concerns", "damage",
    "dangerous", "disappointed", "disaster", "fail", "failure", "fraud",
    "harm", "harmful", "hate", "horrible", "loss", "losses", "negative",
    "oppose", "outraged", "poor", "risky", "scam", "terrible", "threat",
    "unfair", "unhappy", "unsafe", "useless", "vulnerable", "waste", "weak",
    "worried", "worse", "worst", "wrong",
})

INTENSIFIERS = frozenset({
    "absolutely", "completely", "extremely", "greatly", "highly", "really",
    "strongly", "totally", "very",
})

EMOTIONS = {
    "joy": {"happy", "joy", "excited", "thrilled", "delighted", "pleased"},
    "anger": {"angry", "mad", "furious", "outraged", "irritated"},
    "fear": {"afraid", "scared", "worried", "anxious", "nervous"},
    "sadness": {"sad", "depressed", "disappointed", "unhappy"},
    "surprise": {"surprised", "amazed", "shocked", "astonished"},
    "trust": {"trust", "confident", "secure", "reliable"},
}

# Keyword categories for proposal classification. Dict order is the tie-break order.
PROPOSAL_CATEGORIES = {
    "treasury": ("treasury", "fund", "funds", "funding", "allocate", "allocation",
                 "budget", "spend", "grant", "grants", "payment"),
    "technical": ("upgrade", "implement", "deploy", "contract", "protocol", "code",
                  "audit", "migration"),
    "governance": ("governance", "voting", "vote", "parameter", "rule", "process",
                   "delegation", "quorum"),
    "social": ("community", "education", "outreach", "events", "partnership",
               "partnerships", "marketing"),
}

TEXT_CATEGORIES = {
    "technical": ("code", "deploy", "implement", "upgrade", "protocol", "contract"),
    "financial": ("fund", "budget", "treasury", "payment", "cost", "price"),
    "governance": ("vote", "proposal", "govern", "rule", "policy", "decision"),
    "social": ("community", "user", "member", "social", "engagement", "outreach"),
}

URGENCY_WORDS = frozenset({
    "urgent", "immediate", "immediately", "emergency", "critical", "asap",
    "quickly", "deadline", "pressing", "rush",
})

RISK_WORDS = frozenset({
    "bypass", "override", "unlimited", "unrestricted", "multisig", "admin",
    "centralized", "temporary", "unaudited", "experimental",
})

BENEFIT_WORDS = frozenset({
    "transparent", "audited", "gradual", "reversible", "community", "tested",
    "milestone", "milestones", "decentralized", "open-source", "public",
    "improve", "enhance", "optimize",
})
