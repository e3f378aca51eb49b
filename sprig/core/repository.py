"""Repository management for sprig."""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from .config import Config
from .errors import InvalidObject
from .index import Index, IndexEntry, TreeCache, TreeCacheEntry, format_mode, locked_index
from .objects import TREE_MODE, Commit, Signature, SprigObject, Tree, decode
from .store import ObjectStore

logger = logging.getLogger(__name__)


class Repository:
    """
    Represents a sprig repository.
    
    A repository manages the .sprig directory structure and provides
    methods for reading and writing objects and the index.
    """
    
    def __init__(self, path: str = '.'):
        """
        Initialize repository.
        
        Args:
            path: Path to the work tree root (defaults to current directory)
        """
        self.work_tree = Path(path).resolve()
        self.sprig_dir = self.work_tree / '.sprig'
        self.objects_dir = self.sprig_dir / 'objects'
        self.refs_dir = self.sprig_dir / 'refs'
        self.heads_dir = self.refs_dir / 'heads'
        self.head_file = self.sprig_dir / 'HEAD'
        self.index_file = self.sprig_dir / 'index'
        self.config_file = self.sprig_dir / 'config'
        
        self._config = None
        self._objects = None
    
    @property
    def config(self) -> Config:
        """Get Config instance."""
        if self._config is None:
            self._config = Config(self.config_file)
        return self._config
    
    @property
    def objects(self) -> ObjectStore:
        """Get ObjectStore instance."""
        if self._objects is None:
            self._objects = ObjectStore(self.objects_dir, self.config.compression_level)
        return self._objects
    
    def init(self) -> 'Repository':
        """
        Initialize a new repository.
        
        Creates the .sprig directory structure:
        .sprig/
        ├── objects/       # Object database
        ├── refs/
        │   └── heads/     # Branch references
        ├── HEAD           # Current branch
        └── config         # Repository configuration
        
        Returns:
            Repository: self for method chaining
        
        Raises:
            FileExistsError: If repository already exists
        """
        if self.sprig_dir.exists():
            raise FileExistsError(f"Repository already exists at {self.sprig_dir}")
        
        self.sprig_dir.mkdir(parents=True)
        self.objects_dir.mkdir()
        self.refs_dir.mkdir()
        self.heads_dir.mkdir()
        
        self.head_file.write_text('ref: refs/heads/main\n')
        self.config.set('core', 'repositoryformatversion', '0')
        
        logger.debug("Initialized repository at %s", self.sprig_dir)
        return self
    
    @classmethod
    def find_repository(cls, path: str = '.') -> Optional['Repository']:
        """
        Find repository by searching up the directory tree.
        
        Args:
            path: Starting path for search
        
        Returns:
            Repository if found, None otherwise
        """
        current = Path(path).resolve()
        
        while True:
            if (current / '.sprig').is_dir():
                return cls(str(current))
            
            if current == current.parent:
                return None
            
            current = current.parent
    
    def object_path(self, sha1: str) -> Path:
        """Get filesystem path for an object."""
        return self.objects.path(sha1)
    
    def write_object(self, obj: SprigObject) -> str:
        """
        Write object to repository.
        
        Returns:
            str: SHA-1 hash of the object
        """
        return self.objects.put(obj.encode())
    
    def read_object(self, sha1: str, verify: bool = False) -> SprigObject:
        """
        Read object from repository.
        
        Args:
            sha1: 40-character SHA-1 hash
            verify: Check the stored bytes still hash to ``sha1``
        
        Returns:
            SprigObject: Decoded Blob, Tree or Commit
        
        Raises:
            NotFound: Object is not in the store
            InvalidObject: Stored bytes do not decode
        """
        return decode(self.objects.get(sha1, verify=verify))
    
    def object_exists(self, sha1: str) -> bool:
        """Check if object exists in repository."""
        return self.objects.exists(sha1)
    
    def object_type(self, sha1: str) -> str:
        """Type tag of a stored object, read from its header only."""
        return self.objects.read_header(sha1)[0]
    
    def read_tree(self, sha1: str) -> Tree:
        """
        Read a tree and take each entry's type from the object it names.
        
        Entries whose objects are not in the store keep the type implied
        by their mode.
        """
        tree = self.read_object(sha1)
        if not isinstance(tree, Tree):
            raise InvalidObject(f"Object {sha1} is not a tree")
        
        for entry in tree.entries:
            if self.object_exists(entry.hash):
                entry.type = self.object_type(entry.hash)
            else:
                logger.debug("Tree %s entry %s refers to missing object %s",
                             sha1[:7], entry.name, entry.hash[:7])
        return tree
    
    def load_index(self) -> Index:
        """Read the index; a repository without one has an empty index."""
        index = Index()
        index.read(str(self.index_file))
        return index
    
    def locked_index(self) -> locked_index:
        """Context manager for a locked read-modify-write of the index."""
        return locked_index(self.index_file)
    
    def write_tree(self, index: Index) -> str:
        """
        Write tree objects for the staged files.
        
        Directories whose tree-cache record is still valid reuse the cached
        hash instead of being rebuilt. The index's tree cache is replaced
        with records for every directory.
        
        Returns:
            str: Hash of the root tree
        """
        files: Dict[str, List[Tuple[str, IndexEntry]]] = defaultdict(list)
        subdirs: Dict[str, Set[str]] = defaultdict(set)
        counts: Dict[str, int] = defaultdict(int)
        counts[''] = 0
        
        for entry in index.sorted_entries():
            parts = entry.path.split('/')
            for depth in range(len(parts)):
                directory = '/'.join(parts[:depth])
                counts[directory] += 1
                if depth > 0:
                    subdirs['/'.join(parts[:depth - 1])].add(parts[depth - 1])
            files['/'.join(parts[:-1])].append((parts[-1], entry))
        
        old_cache = index.tree_cache
        records: List[Optional[TreeCacheEntry]] = []
        
        def build(path: str) -> str:
            cached = old_cache.subtree(path) if old_cache is not None else []
            if cached and cached[0].entry_count == counts[path]:
                logger.debug("Reusing cached tree for '%s'", path)
                records.extend(cached)
                return cached[0].sha1
            
            position = len(records)
            records.append(None)
            
            # Sorted by name, with directories compared as "name/"
            items = list(files[path])
            items += [(name + '/', None) for name in subdirs[path]]
            items.sort(key=lambda item: item[0].encode())
            
            tree = Tree()
            for name, entry in items:
                if entry is not None:
                    tree.add_entry(format_mode(entry.mode), 'blob', entry.sha1, name)
                else:
                    name = name[:-1]
                    child = f"{path}/{name}" if path else name
                    tree.add_entry(TREE_MODE, 'tree', build(child), name)
            
            sha1 = self.write_object(tree)
            records[position] = TreeCacheEntry(path, counts[path], len(subdirs[path]), sha1)
            return sha1
        
        root = build('')
        index.tree_cache = TreeCache(records)
        return root
    
    def commit_tree(
        self,
        tree_hash: str,
        message: str,
        parent: Optional[str] = None,
        author: Optional[Signature] = None
    ) -> str:
        """
        Write a commit object for a tree.
        
        Args:
            tree_hash: Hash of an existing tree object
            message: Commit message
            parent: Parent commit hash
            author: Author and committer; read from user.name/user.email when omitted
        
        Returns:
            str: Hash of the new commit
        """
        if self.object_type(tree_hash) != 'tree':
            raise InvalidObject(f"Object {tree_hash} is not a tree")
        
        if author is None:
            name, email = self.config.get_user_identity()
            if not name or not email:
                raise ValueError("Set user.name and user.email before committing")
            author = Signature.now(name, email)
        
        commit = Commit.create(tree_hash, parent, author, message)
        return self.write_object(commit)
    
    def __repr__(self) -> str:
        """String representation of repository."""
        return f"Repository(path={self.work_tree})"
