"""
Keyword bot that answers questions about the data structures behind the app.

Keywords are indexed in a trie. A question is answered by exact keyword
matches first, then by prefix completion of longer words, then by edit
distance against every keyword. Topics mentioned in the last few turns get a
score boost so follow-up questions stay on topic.
"""

from __future__ import annotations

import re
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


MAX_HISTORY = 10
RECENT_TOPIC_WINDOW = 3
RECENT_TOPIC_BOOST = 1.5
PREFIX_MIN_LENGTH = 3
FUZZY_MIN_LENGTH = 4
FUZZY_MAX_DISTANCE = 2

KNOWLEDGE_BASE: Dict[str, Dict[str, Any]] = {
    "start": {
        "text": "Hi, I'm EonBot. Ask me about the data structures that power this chat: "
                "graphs, stacks, tries, hash maps or trees.",
        "keywords": ["hello", "hi", "hey", "start", "help", "menu"],
        "options": ["Graph & HashMap", "Stacks", "Trie", "Tree Structures"],
    },
    "graph": {
        "text": "Friendships form an undirected graph stored as an adjacency list. "
                "'People you may know' walks two hops out from you and counts mutual friends.",
        "keywords": ["graph", "friends", "network", "adjacency", "edge", "recommendation"],
        "options": ["BFS Algorithm", "Back to Start"],
    },
    "bfs": {
        "text": "Breadth-first search visits nodes level by level. Friend suggestions stop at "
                "level two: friends of your friends who are not already your friends.",
        "keywords": ["bfs", "breadth", "traversal", "level", "distance"],
        "options": ["Graph & HashMap", "Back to Start"],
    },
    "stack": {
        "text": "Notifications and friend requests are stacks: the newest item is on top and "
                "'pop' removes it in O(1).",
        "keywords": ["stack", "lifo", "pop", "push", "notification"],
        "options": ["Back to Start"],
    },
    "trie": {
        "text": "A trie stores words character by character so every prefix is a path. "
                "I use one to find your keywords, and user search matches on username prefixes.",
        "keywords": ["trie", "prefix", "autocomplete", "search", "suggestion"],
        "options": ["Back to Start"],
    },
    "hashmap": {
        "text": "Hash maps give O(1) average lookups. The socket server keeps one from user id "
                "to live connections so a message reaches the right room instantly.",
        "keywords": ["hashmap", "hash", "map", "dictionary", "lookup", "socket"],
        "options": ["Graph & HashMap", "Back to Start"],
    },
    "tree": {
        "text": "Chat activity is bucketed by hour of day and the busiest hour is reported as "
                "your peak time.",
        "keywords": ["tree", "bst", "activity", "peak", "hour", "histogram"],
        "options": ["Back to Start"],
    },
    "complexity": {
        "text": "Building the friend graph is O(V + E); a recommendation query only touches "
                "your two-hop neighbourhood.",
        "keywords": ["complexity", "performance", "big-o", "fast", "speed"],
        "options": ["Graph & HashMap", "Back to Start"],
    },
}


class TrieNode:
    __slots__ = ("children", "knowledge_keys", "weight", "is_end_of_word")

    def __init__(self):
        self.children: Dict[str, TrieNode] = {}
        self.knowledge_keys: List[str] = []
        self.weight = 0
        self.is_end_of_word = False


@dataclass
class Match:
    key: str
    word: str
    score: float
    method: str


@dataclass
class HistoryEntry:
    input: str
    key: str
    timestamp: float = field(default_factory=time.time)


def levenshtein_distance(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


class BotEngine:
    def __init__(self, knowledge_base: Optional[Dict[str, Dict[str, Any]]] = None):
        self.knowledge_base = knowledge_base if knowledge_base is not None else KNOWLEDGE_BASE
        self.root = TrieNode()
        self.history: List[HistoryEntry] = []
        self._build_trie()
        self.keyword_stats = self._analyze_keywords()

    def _build_trie(self):
        for key, node in self.knowledge_base.items():
            keywords = node.get("keywords", [])
            for index, word in enumerate(keywords):
                # Earlier keywords describe the topic best
                self.insert_keyword(word.lower().strip(), key, len(keywords) - index)

    def insert_keyword(self, word: str, knowledge_key: str, weight: int):
        node = self.root
        for char in word:
            node = node.children.setdefault(char, TrieNode())
        node.is_end_of_word = True
        if knowledge_key not in node.knowledge_keys:
            node.knowledge_keys.append(knowledge_key)
        node.weight = max(node.weight, weight)

    def search_keyword(self, word: str) -> Optional[TrieNode]:
        node = self.root
        for char in word:
            node = node.children.get(char)
            if node is None:
                return None
        return node if node.is_end_of_word else None

    def autocomplete(self, prefix: str) -> List[Dict[str, Any]]:
        prefix = prefix.lower().strip()
        node = self.root
        for char in prefix:
            node = node.children.get(char)
            if node is None:
                return []
        results: List[Dict[str, Any]] = []
        self._collect_words(node, prefix, results)
        return sorted(results, key=lambda r: r["weight"], reverse=True)

    def _collect_words(self, node: TrieNode, prefix: str, results: List[Dict[str, Any]]):
        if node.is_end_of_word:
            results.append({"word": prefix, "keys": list(node.knowledge_keys), "weight": node.weight})
        for char, child in node.children.items():
            self._collect_words(child, prefix + char, results)

    def fuzzy_search(self, text: str, max_distance: int = FUZZY_MAX_DISTANCE) -> List[Dict[str, Any]]:
        text = text.lower().strip()
        matches = []
        for key, node in self.knowledge_base.items():
            for keyword in node.get("keywords", []):
                keyword = keyword.lower()
                distance = levenshtein_distance(text, keyword)
                if distance <= max_distance:
                    matches.append({
                        "keyword": keyword,
                        "key": key,
                        "distance": distance,
                        "similarity": 1 - distance / max(len(text), len(keyword)),
                    })
        return sorted(matches, key=lambda m: m["similarity"], reverse=True)

    def _analyze_keywords(self) -> Dict[str, Any]:
        all_keywords = [k.lower() for node in self.knowledge_base.values() for k in node.get("keywords", [])]
        topics = len(self.knowledge_base) or 1
        return {
            "total_keywords": len(all_keywords),
            "unique_keywords": len(set(all_keywords)),
            "avg_keywords_per_topic": len(all_keywords) / topics,
        }

    def get_response(self, text: Any) -> Dict[str, Any]:
        if not text or not isinstance(text, str):
            return self.knowledge_base.get("start", {})

        normalized = text.lower().strip()
        words = [w for w in re.split(r"\s+", re.sub(r"[?.,!;:]", " ", normalized)) if w]

        matches = self._exact_matches(words)
        if not matches:
            matches = self._prefix_matches(words)
        if not matches and words:
            matches = self._fuzzy_matches(words)

        if matches:
            best_key = self._select_best_match(matches)
            self._add_to_history(normalized, best_key)
            return self.knowledge_base[best_key]
        return self._fallback(words)

    def _exact_matches(self, words: List[str]) -> List[Match]:
        matches = []
        for word in words:
            node = self.search_keyword(word)
            if node is not None:
                matches.extend(Match(key, word, node.weight * 10, "exact") for key in node.knowledge_keys)
        return matches

    def _prefix_matches(self, words: List[str]) -> List[Match]:
        matches = []
        for word in words:
            if len(word) < PREFIX_MIN_LENGTH:
                continue
            for result in self.autocomplete(word)[:3]:
                matches.extend(Match(key, result["word"], result["weight"] * 5, "prefix") for key in result["keys"])
        return matches

    def _fuzzy_matches(self, words: List[str]) -> List[Match]:
        longest = max(words, key=len)
        if len(longest) < FUZZY_MIN_LENGTH:
            return []
        return [
            Match(result["key"], result["keyword"], result["similarity"] * 3, "fuzzy")
            for result in self.fuzzy_search(longest)[:3]
        ]

    def _select_best_match(self, matches: List[Match]) -> str:
        scores: Dict[str, float] = {}
        for match in matches:
            scores[match.key] = scores.get(match.key, 0) + match.score

        recent = {entry.key for entry in self.history[-RECENT_TOPIC_WINDOW:]}
        for key in scores:
            if key in recent:
                scores[key] *= RECENT_TOPIC_BOOST

        # First key reaching the top score wins
        best_key, best_score = None, -1.0
        for key, score in scores.items():
            if score > best_score:
                best_key, best_score = key, score
        return best_key

    def _add_to_history(self, text: str, key: str):
        self.history.append(HistoryEntry(text, key))
        if len(self.history) > MAX_HISTORY:
            self.history.pop(0)

    def _fallback(self, words: List[str]) -> Dict[str, Any]:
        if any(w in ("fast", "speed", "performance", "slow") for w in words):
            suggestions = ["Performance Analysis", "Optimization Techniques"]
        elif any(w in ("tree", "node", "leaf", "root") for w in words):
            suggestions = ["Tree Structures", "BST Deep Dive"]
        elif any(w in ("graph", "network", "connection") for w in words):
            suggestions = ["Graph & HashMap", "BFS Algorithm"]
        else:
            suggestions = ["Data Structures Overview", "Algorithms Overview", "Back to Start"]

        return {
            "text": (
                "I couldn't find an exact match in my knowledge base.\n"
                f"Input: \"{', '.join(words)}\"\n"
                "Try asking \"How does BFS work?\" or \"Tell me about stacks\".\n"
                f"Topics: {len(self.knowledge_base)}, keywords indexed: {self.keyword_stats['total_keywords']}"
            ),
            "options": suggestions,
            "fallback": True,
        }

    def trie_size(self, node: Optional[TrieNode] = None) -> int:
        node = node or self.root
        return 1 + sum(self.trie_size(child) for child in node.children.values())

    def get_metrics(self) -> Dict[str, Any]:
        trie_nodes = self.trie_size()
        return {
            "trie_nodes": trie_nodes,
            "knowledge_nodes": len(self.knowledge_base),
            "total_keywords": self.keyword_stats["total_keywords"],
            "unique_keywords": self.keyword_stats["unique_keywords"],
            "avg_keywords_per_node": round(self.keyword_stats["avg_keywords_per_topic"], 2),
            "history_size": len(self.history),
        }


# One engine per user so topic history stays personal; least recently used
# engines are evicted past MAX_ENGINES
MAX_ENGINES = 1000
_engines: OrderedDict[str, BotEngine] = OrderedDict()


def get_engine(user_id: Any) -> BotEngine:
    key = str(user_id)
    engine = _engines.get(key)
    if engine is None:
        engine = _engines[key] = BotEngine()
    _engines.move_to_end(key)
    while len(_engines) > MAX_ENGINES:
        _engines.popitem(last=False)
    return engine
