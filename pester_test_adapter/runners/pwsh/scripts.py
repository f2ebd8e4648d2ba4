"""PowerShell scripts executed by the runner.

Each script is a fixed body preceded by a header that assigns its inputs to
variables, so no value is ever interpolated into the body itself.
"""

from collections.abc import Sequence

from pester_test_adapter.runners.pwsh.config import Verbosity

DISCOVERY_BODY = r"""
Import-Module Pester -MinimumVersion $MinimumVersion -ErrorAction Stop

function Find-PesterTest {
    [CmdletBinding()]
    param(
        [Parameter(Mandatory)]
        [String[]] $Path
    )
    & (Get-Module Pester) {
        param ($Path, $SessionState)

        Reset-TestSuiteState
        # keeps Describe from assuming an interactive session
        $invokedViaInvokePester = $true
        $extension = $PesterPreference.Run.TestExtension.Value
        $files = Find-File -Path $Path -ExcludePath @() -Extension $extension
        $containers = foreach ($f in $files) {
            New-BlockContainerObject -File (Get-Item $f)
        }
        Find-Test -BlockContainer $containers -SessionState $SessionState
    } -Path $Path -SessionState $PSCmdlet.SessionState
}

function New-SuiteObject ($Block) {
    [PSCustomObject]@{
        type = 'suite'
        id = "$($Block.ScriptBlock.File);$($Block.ScriptBlock.StartPosition.StartLine)"
        file = $Block.ScriptBlock.File
        line = $Block.ScriptBlock.StartPosition.StartLine - 1
        label = $Block.Name
        children = [Collections.Generic.List[Object]]@()
    }
}

function New-TestObject ($Test) {
    [PSCustomObject]@{
        type = 'test'
        id = "$($Test.ScriptBlock.File);$($Test.ScriptBlock.StartPosition.StartLine)"
        file = $Test.ScriptBlock.File
        line = $Test.ScriptBlock.StartPosition.StartLine - 1
        label = $Test.Name
    }
}

function Add-Children ($Children, $Block) {
    foreach ($b in $Block.Blocks) {
        $o = New-SuiteObject $b
        $Children.Add($o)
        Add-Children $o.children $b
    }
    foreach ($t in $Block.Tests) {
        $Children.Add((New-TestObject $t))
    }
}

$root = [PSCustomObject]@{
    type = 'suite'
    id = 'root'
    label = 'Pester'
    children = [Collections.Generic.List[Object]]@()
}

foreach ($container in (Find-PesterTest -Path $Path)) {
    $fileSuite = [PSCustomObject]@{
        type = 'suite'
        id = $container.BlockContainer.Item.FullName
        file = $container.BlockContainer.Item.FullName
        label = $container.BlockContainer.Item.Name
        children = [Collections.Generic.List[Object]]@()
    }
    $root.children.Add($fileSuite)
    Add-Children $fileSuite.children $container
}

$root | ConvertTo-Json -Depth 100 -Compress
"""

INVOKE_BODY = r"""
$pesterModule = Microsoft.PowerShell.Core\Get-Module Pester
if (!$pesterModule) {
    $pesterModule = Microsoft.PowerShell.Core\Import-Module Pester `
        -ErrorAction Ignore -PassThru -MinimumVersion $MinimumVersion
    if (!$pesterModule) {
        Write-Error "Failed to import Pester $MinimumVersion or newer."
        exit 1
    }
}

$configuration = @{
    Run = @{ Path = $ScriptPath }
    Output = @{ Verbosity = $Verbosity }
}
if ($LineNumber -match '^\d+$') {
    $configuration.Add('Filter', @{ Line = $ScriptPath + ':' + $LineNumber })
}
if ($OutputPath) {
    $configuration.Add('TestResult', @{
        Enabled = $true
        OutputFormat = 'NUnitXml'
        OutputPath = $OutputPath
    })
}

Pester\Invoke-Pester -Configuration $configuration | Out-Null
"""


def quote(value: str) -> str:
    """Quote a value as a single-quoted PowerShell string literal."""
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def discovery_script(paths: Sequence[str], minimum_version: str) -> str:
    """Build the script printing the discovery document for ``paths``."""
    quoted_paths = ",\n    ".join(quote(path) for path in paths)
    header = (
        f"$Path = @(\n    {quoted_paths}\n)\n"
        f"$MinimumVersion = {quote(minimum_version)}\n"
    )
    return header + DISCOVERY_BODY


def invoke_script(
    script_path: str,
    output_path: str,
    minimum_version: str,
    verbosity: Verbosity,
    line_number: int | None = None,
) -> str:
    """Build the script running ``script_path``, optionally filtered by line."""
    line = "" if line_number is None else str(line_number)
    header = (
        f"$ScriptPath = {quote(script_path)}\n"
        f"$LineNumber = {quote(line)}\n"
        f"$OutputPath = {quote(output_path)}\n"
        f"$MinimumVersion = {quote(minimum_version)}\n"
        f"$Verbosity = {quote(verbosity)}\n"
    )
    return header + INVOKE_BODY
