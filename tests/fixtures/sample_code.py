"""Sample sources for chunking and filtering tests."""

# TypeScript service module
SAMPLE_TS_MODULE = '''import { Request, Response } from 'express';
import { UserRepository } from './repository';

export interface UserDto {
  id: string;
  email: string;
  displayName: string;
}

export type UserId = string;

export const DEFAULT_PAGE_SIZE = 25;

export class UserService {
  private readonly repository: UserRepository;

  constructor(repository: UserRepository) {
    this.repository = repository;
  }

  async findById(id: UserId): Promise<UserDto | null> {
    const user = await this.repository.get(id);
    if (!user) {
      return null;
    }
    return { id: user.id, email: user.email, displayName: user.name };
  }

  async list(page: number): Promise<UserDto[]> {
    const offset = page * DEFAULT_PAGE_SIZE;
    const users = await this.repository.range(offset, DEFAULT_PAGE_SIZE);
    return users.map((user) => ({ id: user.id, email: user.email, displayName: user.name }));
  }
}

export function handleGetUser(service: UserService) {
  return async (req: Request, res: Response) => {
    const user = await service.findById(req.params.id);
    if (!user) {
      res.status(404).json({ error: 'not found' });
      return;
    }
    res.json(user);
  };
}
'''

# Python module with a class and free functions
SAMPLE_PYTHON_MODULE = '''import hashlib
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class TokenStore:
    """In-memory token store."""

    def __init__(self):
        self._tokens: Dict[str, str] = {}

    def issue(self, user_id: str) -> str:
        token = hashlib.sha256(user_id.encode()).hexdigest()
        self._tokens[token] = user_id
        logger.debug("issued token for %s", user_id)
        return token

    def resolve(self, token: str) -> Optional[str]:
        return self._tokens.get(token)

    def revoke(self, token: str) -> bool:
        return self._tokens.pop(token, None) is not None


def hash_password(password: str, salt: str) -> str:
    digest = hashlib.sha256()
    digest.update(salt.encode())
    digest.update(password.encode())
    return digest.hexdigest()


def verify_password(password: str, salt: str, expected: str) -> bool:
    return hash_password(password, salt) == expected
'''

# Markdown document with three level-2 sections and a code block
SAMPLE_MARKDOWN = '''## Installation

Install the package from the index.
Then make sure the grammars are present.

## Usage

Chunk a file from the command line:

```bash
python scripts/chunk_file.py src/app.ts
```

## Configuration

Options are passed per call.
Unset options use the chunker default.
'''

# Test-suite content with several framework markers
SAMPLE_JEST_TEST = '''describe('UserService', () => {
  beforeEach(() => {
    repository = new Mock();
  });

  it('finds a user', async () => {
    expect(await service.findById('1')).toEqual(user);
  });
});
'''

SAMPLE_GENERATED = '''// Code generated by protoc-gen-ts. DO NOT EDIT.
export const schema = { fields: [] };
'''

SAMPLE_DEPRECATED = '''/**
 * @deprecated use UserService.list instead
 */
export function listUsers() {
  return legacyClient.users();
}
'''


def make_function(name: str, body_lines: int, indent: str = '  ') -> str:
    """A brace-delimited function with ``body_lines`` statements (body_lines + 2 lines total)."""
    body = '\n'.join(f"{indent}const v{i} = {i};" for i in range(body_lines))
    return f"function {name}() {{\n{body}\n}}\n"


def make_python_function(name: str, body_lines: int) -> str:
    """A Python function with ``body_lines`` statements (body_lines + 1 lines total)."""
    body = '\n'.join(f"    v{i} = {i}" for i in range(body_lines))
    return f"def {name}():\n{body}\n"
