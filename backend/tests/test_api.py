def _register(client, badge_id='B1', name='Ann'):
    res = client.post('/api/auth/register', json={'badgeId': badge_id, 'name': name})
    assert res.status_code == 201
    return res.get_json()['player']


def test_health(client):
    res = client.get('/api/health')
    assert res.status_code == 200
    assert res.get_json()['status'] == 'OK'


def test_badge_login_prompts_for_registration(client):
    res = client.post('/api/auth/badge-login', json={'badgeId': 'NEW-1'})
    assert res.status_code == 200
    data = res.get_json()
    assert data['success'] is False
    assert data['registrationRequired'] is True

    _register(client, 'NEW-1', 'Newbie')
    data = client.post('/api/auth/badge-login', json={'badgeId': 'NEW-1'}).get_json()
    assert data['success'] is True
    assert data['player']['name'] == 'Newbie'
    assert data['message'] == 'Welcome new player!'


def test_badge_login_requires_badge(client):
    res = client.post('/api/auth/badge-login', json={})
    assert res.status_code == 400
    assert res.get_json()['success'] is False


def test_duplicate_registration_conflicts(client):
    _register(client)
    res = client.post('/api/auth/register', json={'badgeId': 'B1', 'name': 'Other'})
    assert res.status_code == 409
    assert 'already exists' in res.get_json()['error']

    res = client.post('/api/players/', json={'badgeId': 'B1', 'name': 'Other'})
    assert res.status_code == 409


def test_get_player(client):
    player = _register(client)
    assert client.get('/api/players/badge/B1').get_json()['id'] == player['id']
    assert client.get(f"/api/players/{player['id']}").get_json()['badgeId'] == 'B1'
    res = client.get('/api/players/badge/nobody')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'Player not found'


def test_new_player_platform_profile(client):
    _register(client)
    res = client.get('/api/players/badge/B1/tilli')
    assert res.status_code == 200
    profile = res.get_json()
    assert profile['coins'] == 100
    assert profile['unlockedLevels'] == [1]
    assert profile['highestLevelReached'] == 1


def test_submit_score_flow(client):
    player = _register(client)
    res = client.post('/api/highscores/submit', json={
        'playerId': player['id'], 'gameName': 'tetris', 'score': 1200, 'level': 3, 'lines': 14, 'coinsEarned': 12,
    })
    assert res.status_code == 200
    data = res.get_json()
    assert data['isNewHighscore'] is True
    assert data['gameStats']['highscore'] == 1200
    assert data['gameStats']['coins'] == 12
    assert data['score']['level'] == 3

    data = client.post('/api/highscores/submit', json={
        'playerId': player['id'], 'gameName': 'tetris', 'score': 800,
    }).get_json()
    assert data['isNewHighscore'] is False
    assert data['gameStats']['highscore'] == 1200
    assert data['gameStats']['gamesPlayed'] == 2

    refreshed = client.get('/api/players/badge/B1').get_json()
    assert refreshed['totalScore'] == 2000
    assert refreshed['gamesPlayed'] == 2


def test_submit_requires_fields(client):
    player = _register(client)
    res = client.post('/api/highscores/submit', json={'playerId': player['id'], 'score': 5})
    assert res.status_code == 400
    res = client.post('/api/highscores/submit', json={'playerId': 9999, 'gameName': 'snake', 'score': 5})
    assert res.status_code == 404


def test_submit_is_lenient_with_numbers(client):
    player = _register(client)
    res = client.post('/api/highscores/submit', json={
        'playerId': player['id'], 'gameName': 'snake', 'score': '42', 'level': 'abc', 'coinsEarned': None,
    })
    assert res.status_code == 200
    stats = res.get_json()['gameStats']
    assert stats['highscore'] == 42
    assert stats['bestLevel'] == 1


def test_shooter_submit_folds_top_level_fields(client):
    player = _register(client)
    client.post('/api/highscores/submit', json={
        'playerId': player['id'], 'gameName': 'spaceships', 'score': 1500,
        'asteroidsDestroyed': 25, 'accuracy': 85, 'survivalTime': 100, 'shipUsed': 'destroyer',
    })
    profile = client.get(f"/api/highscores/profile/{player['id']}/spaceships").get_json()
    assert profile['totalAsteroidsDestroyed'] == 25
    assert profile['bestAccuracy'] == 85
    assert profile['favoriteShip'] == 'destroyer'
    assert profile['averageScore'] == 1500
    assert profile['coins'] == 1000


def test_update_shooter_profile(client):
    player = _register(client)
    res = client.post(f"/api/highscores/profile/{player['id']}/spaceships", json={'equippedShip': 'scout'})
    assert res.get_json()['profile']['equippedShip'] == 'scout'


def test_platform_highscores_rank_level_first_and_dedupe(client):
    ann = _register(client, 'B1', 'Ann')
    bob = _register(client, 'B2', 'Bob')
    client.post('/api/highscores/submit', json={'playerId': ann['id'], 'gameName': 'tilliman', 'score': 5000, 'level': 2})
    client.post('/api/highscores/submit', json={'playerId': ann['id'], 'gameName': 'tilliman', 'score': 100, 'level': 1})
    client.post('/api/highscores/submit', json={'playerId': bob['id'], 'gameName': 'tilliman', 'score': 900, 'level': 3})

    board = client.get('/api/highscores/tilliman').get_json()
    assert [row['name'] for row in board] == ['Bob', 'Ann']
    assert board[0]['level'] == 3
    assert board[1]['score'] == 5000


def test_ledger_highscores_show_best_per_player(client):
    players = [_register(client, f'DEDUP_{i}', f'Dedup{i}') for i in range(3)]
    for idx, score in [(0, 10), (0, 25), (0, 15), (1, 30), (1, 20), (2, 12)]:
        client.post('/api/scores/', json={'playerId': players[idx]['id'], 'gameName': 'snake', 'score': score})

    board = client.get('/api/highscores/snake').get_json()
    assert [(row['name'], row['score']) for row in board] == [('Dedup1', 30), ('Dedup0', 25), ('Dedup2', 12)]

    rows = client.get('/api/scores/game/snake').get_json()
    assert len(rows) == 3


def test_player_document_highscores(client):
    ann = _register(client, 'B1', 'Ann')
    bob = _register(client, 'B2', 'Bob')
    _register(client, 'B3', 'Cid')
    client.post('/api/highscores/submit', json={'playerId': ann['id'], 'gameName': 'spaceships', 'score': 300})
    client.post('/api/highscores/submit', json={'playerId': bob['id'], 'gameName': 'spaceships', 'score': 700})
    client.post('/api/highscores/submit', json={'playerId': bob['id'], 'gameName': 'spaceships', 'score': 100})

    board = client.get('/api/highscores/spaceships?limit=5').get_json()
    assert [(row['name'], row['highscore']) for row in board] == [('Bob', 700), ('Ann', 300)]


def test_shooter_leaderboard_categories(client):
    ann = _register(client, 'B1', 'Ann')
    bob = _register(client, 'B2', 'Bob')
    client.post('/api/highscores/submit', json={'playerId': ann['id'], 'gameName': 'spaceships', 'score': 300, 'accuracy': 95})
    client.post('/api/highscores/submit', json={'playerId': bob['id'], 'gameName': 'spaceships', 'score': 700, 'accuracy': 60})

    by_accuracy = client.get('/api/highscores/leaderboard/spaceships/accuracy').get_json()
    assert [row['name'] for row in by_accuracy] == ['Ann', 'Bob']
    by_unknown = client.get('/api/highscores/leaderboard/spaceships/whatever').get_json()
    assert [row['name'] for row in by_unknown] == ['Bob', 'Ann']


def test_level_complete_and_sync(client):
    player = _register(client)
    res = client.post('/api/players/badge/B1/tilli/level-complete', json={
        'level': 2, 'score': 1500, 'gearsCollected': 5, 'enemiesDefeated': 3, 'deaths': 1, 'playTime': 90,
        'completionTime': 90,
    })
    assert res.status_code == 200
    data = res.get_json()
    assert data['coinsEarned'] == 175
    assert data['profile']['unlockedLevels'] == [1, 2, 3]

    client.post('/api/scores/', json={'playerId': player['id'], 'gameName': 'tilliman', 'score': 4500, 'level': 5})
    synced = client.post('/api/players/badge/B1/tilli/sync-levels').get_json()['profile']
    assert synced['unlockedLevels'] == [1, 2, 3, 4, 5, 6]
    assert synced['highestLevelReached'] == 5

    history = client.get('/api/players/badge/B1/tilli/scores').get_json()
    assert [row['score'] for row in history] == [4500, 1500]


def test_platform_shop_endpoints(client):
    _register(client)
    res = client.post('/api/players/badge/B1/tilli/purchase/skin', json={'itemId': 'golden', 'cost': 150})
    assert res.status_code == 400
    data = res.get_json()
    assert data['success'] is False
    assert data['reason'] == 'insufficient_coins'
    assert data['profile']['coins'] == 100

    res = client.post('/api/players/badge/B1/tilli/purchase/skin', json={'itemId': 'ninja', 'cost': 40})
    assert res.status_code == 200
    assert res.get_json()['profile']['coins'] == 60

    res = client.post('/api/players/badge/B1/tilli/equip', json={'itemId': 'ninja'})
    assert res.get_json()['profile']['equippedSkin'] == 'ninja'

    res = client.post('/api/players/badge/B1/tilli/purchase/ability', json={'itemId': 'dash', 'cost': 60})
    assert res.get_json()['profile']['ownedAbilities'] == ['dash']
    assert client.get('/api/players/badge/B1/tilli').get_json()['coins'] == 0


def test_platform_update_and_unlock_endpoints(client):
    _register(client)
    res = client.post('/api/players/badge/B1/tilli', json={'unlockedLevels': [4, 2, 1, 2], 'achievements': ['first-run']})
    profile = res.get_json()['profile']
    assert profile['unlockedLevels'] == [1, 2, 4]
    assert profile['achievements'] == ['first-run']

    res = client.post('/api/players/badge/B1/tilli/unlock', json={'level': 3})
    assert res.get_json()['profile']['unlockedLevels'] == [1, 2, 3, 4]


def test_platform_profile_by_numeric_id(client):
    player = _register(client)
    res = client.get(f"/api/players/badge/{player['id']}/tilli")
    assert res.status_code == 200
    assert res.get_json()['playerId'] == player['id']


def test_list_players_by_total_score(client):
    ann = _register(client, 'B1', 'Ann')
    bob = _register(client, 'B2', 'Bob')
    client.post('/api/scores/', json={'playerId': ann['id'], 'gameName': 'snake', 'score': 10})
    client.post('/api/scores/', json={'playerId': bob['id'], 'gameName': 'snake', 'score': 90})

    players = client.get('/api/players').get_json()
    assert [p['name'] for p in players] == ['Bob', 'Ann']
    assert players[0]['totalScore'] == 90


def test_player_game_scores(client):
    player = _register(client)
    for score in [5, 50, 20]:
        client.post('/api/highscores/submit', json={'playerId': player['id'], 'gameName': 'tetris', 'score': score})

    rows = client.get(f"/api/highscores/player/{player['id']}/tetris?limit=2").get_json()
    assert [row['score'] for row in rows] == [50, 20]
    assert rows[0]['name'] == 'Ann'


def test_badge_login_leaves_last_played_alone(client):
    before = _register(client)['lastPlayed']
    data = client.post('/api/auth/badge-login', json={'badgeId': 'B1'}).get_json()
    assert data['success'] is True
    assert data['player']['lastPlayed'] == before


def test_submit_ignores_malformed_custom_stats(client):
    player = _register(client)
    for bad in ['oops', 42, ['a', 'b']]:
        res = client.post('/api/highscores/submit', json={
            'playerId': player['id'], 'gameName': 'spaceships', 'score': 10, 'customStats': bad, 'accuracy': 50,
        })
        assert res.status_code == 200

    profile = client.get(f"/api/highscores/profile/{player['id']}/spaceships").get_json()
    assert profile['gamesPlayed'] == 3
    assert profile['bestAccuracy'] == 50


def test_ledger_leaderboard_limit_counts_players(client):
    players = [_register(client, f'L{i}', f'Lim{i}') for i in range(3)]
    for idx, score in [(0, 90), (0, 80), (0, 70), (1, 60), (2, 50)]:
        client.post('/api/scores/', json={'playerId': players[idx]['id'], 'gameName': 'snake', 'score': score})

    rows = client.get('/api/scores/game/snake?limit=2').get_json()
    assert [(row['name'], row['score']) for row in rows] == [('Lim0', 90), ('Lim1', 60)]
    assert [row['rank'] for row in rows] == [1, 2]
