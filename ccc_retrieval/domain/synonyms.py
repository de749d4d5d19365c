# ccc_retrieval/domain/synonyms.py
#
# Colloquial phrasing -> Catechism vocabulary. Iteration order is the
# insertion order below and must stay stable: expansion output depends on it.

from types import MappingProxyType
from typing import Mapping, Tuple

SynonymTable = Mapping[str, Tuple[str, ...]]


DEFAULT_SYNONYMS: SynonymTable = MappingProxyType({
    # Sacraments
    "communion":      ("Eucharist", "Holy Communion"),
    "mass":           ("Eucharistic liturgy", "Holy Sacrifice"),
    "confession":     ("sacrament of Penance", "sacrament of Reconciliation"),
    "baptism":        ("Christian initiation",),
    "confirmation":   ("Chrismation",),
    "last rites":     ("Anointing of the Sick",),
    "marriage":       ("Matrimony", "conjugal covenant"),
    "wedding":        ("Matrimony",),
    "divorce":        ("dissolution of marriage",),
    "priest":         ("ordained minister", "presbyter"),
    "priesthood":     ("Holy Orders",),

    # Persons
    "mary":           ("Blessed Virgin Mary", "Mother of God"),
    "jesus":          ("Christ", "the Word made flesh"),
    "holy ghost":     ("Holy Spirit",),
    "god the father": ("the Father",),
    "pope":           ("Roman Pontiff", "successor of Peter"),
    "saints":         ("communion of saints",),
    "angels":         ("heavenly spirits",),
    "devil":          ("Satan", "the evil one"),

    # Moral life
    "sin":            ("transgression", "offense against God"),
    "forgiveness":    ("absolution", "remission of sins"),
    "abortion":       ("direct abortion", "procured abortion"),
    "euthanasia":     ("direct euthanasia",),
    "suicide":        ("taking one's own life",),
    "lying":          ("offenses against truth",),
    "stealing":       ("theft",),
    "sex":            ("sexuality", "chastity"),
    "conscience":     ("moral conscience",),
    "war":            ("legitimate defense", "avoiding war"),
    "death penalty":  ("capital punishment",),

    # Last things and doctrine
    "heaven":         ("eternal life", "beatific vision"),
    "hell":           ("eternal punishment", "definitive self-exclusion"),
    "purgatory":      ("final purification",),
    "end of the world": ("Last Judgment", "second coming"),
    "trinity":        ("Most Holy Trinity",),
    "bible":          ("Sacred Scripture",),
    "tradition":      ("Sacred Tradition",),
    "church":         ("People of God", "Body of Christ"),
    "salvation":      ("justification", "redemption"),
    "grace":          ("sanctifying grace",),
    "faith":          ("theological virtue of faith",),
    "prayer":         ("raising of one's mind and heart to God",),
    "worship":        ("adoration",),
    "sunday":         ("the Lord's Day",),
})
