"""Create the task_dependencies table and its indexes on an existing database."""

import asyncio
from sqlalchemy import text
from app.database import engine


async def setup_dependencies_table():
    async with engine.begin() as conn:
        result = await conn.execute(text('''
            SELECT table_name FROM information_schema.tables
            WHERE table_name = 'task_dependencies'
        '''))

        if result.fetchone() is None:
            print('Creating task_dependencies table...')

            await conn.execute(text('''
                CREATE TABLE task_dependencies (
                    id UUID PRIMARY KEY,
                    owner_id VARCHAR(255) NOT NULL,
                    task_id VARCHAR(255) NOT NULL,
                    depends_on_task_id VARCHAR(255) NOT NULL,
                    dependency_type VARCHAR(32) NOT NULL DEFAULT 'finish-to-start',
                    lag INTEGER,
                    notes VARCHAR(1000),
                    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
                )
            '''))
            print('✓ Created task_dependencies table')
        else:
            print('task_dependencies table already exists')

        # Indexes are idempotent; run them either way
        for name, columns in [
            ('ix_task_dependencies_owner_id', 'owner_id'),
            ('ix_task_dependencies_task_id', 'task_id'),
            ('ix_task_dependencies_depends_on_task_id', 'depends_on_task_id'),
            ('ix_task_dependencies_owner_task', 'owner_id, task_id'),
        ]:
            await conn.execute(text(
                f'CREATE INDEX IF NOT EXISTS {name} ON task_dependencies ({columns})'
            ))
        print('✓ Indexes in place')


if __name__ == "__main__":
    asyncio.run(setup_dependencies_table())
